"""Command line interface for clusterops (entry point: ``clusterops.cli.main:main``)."""
