"""Shared constants: remote paths, command templates, and subcommand names."""

# ── Subcommands ───────────────────────────────────────────────────────

JOIN_SUBCMD = "join"
DELETE_SUBCMD = "delete"

# ── Cluster defaults ──────────────────────────────────────────────────

DEFAULT_CLUSTER_NAME = "my-cluster"
DEFAULT_DATA_ROOT = "/var/lib/sealer/data"
API_SERVER_DOMAIN = "apiserver.cluster.local"
ETC_HOSTS = "/etc/hosts"
TMP_CLUSTERFILE = "/tmp/Clusterfile"
REMOTE_BINARY_PATH = "/usr/local/bin/sealer"
REMOTE_REGISTRY_AUTH_DIR = "/root/.docker"
KUBECTL_PATH = "/usr/bin/kubectl"
KUBE_ADMIN_CONF = "/etc/kubernetes/admin.conf"
MASTER0_READY_ATTEMPTS = 6

# ── Remote command templates ──────────────────────────────────────────

CHMOD_CMD = "chmod +x {path}"

REMOTE_CLEAN_MASTER_OR_NODE = (
    "if which kubeadm;then kubeadm reset -f {vlog};fi && "
    "modprobe -r ipip && lsmod && "
    "rm -rf /etc/kubernetes/ && "
    "rm -rf /etc/systemd/system/kubelet.service.d && rm -rf /etc/systemd/system/kubelet.service && "
    "rm -rf /usr/bin/kubeadm && rm -rf /usr/bin/kubelet-pre-start.sh && "
    "rm -rf /usr/bin/kubelet && rm -rf /usr/bin/crictl && "
    "rm -rf /etc/cni && rm -rf /opt/cni && "
    "rm -rf /var/lib/etcd && rm -rf /var/etcd"
)

REMOTE_REMOVE_ETC_HOST = "echo \"$(sed '/{pattern}/d' /etc/hosts)\" > /etc/hosts"

REMOTE_ADD_ETC_HOST = "cat /etc/hosts | grep '{entry}' || echo '{entry}' >> /etc/hosts"


def vlog_flag(vlog: int) -> str:
    """Render the kubeadm verbosity flag; level 0 means no flag at all."""
    if vlog > 0:
        return f"-v {vlog}"
    return ""
