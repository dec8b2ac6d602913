"""
Application constants and metadata.
"""

# Application info
APP_NAME = "cgroupv2 exporter"
APP_VERSION = "0.1.0"
APP_URL = "https://github.com/flipkart-incubator/cgroupv2_exporter"

# Prometheus namespace shared by every exported metric
NAMESPACE = "cgroupv2"

# Default values
DEFAULT_LISTEN_ADDRESS = ""
DEFAULT_PORT = 9753
DEFAULT_TELEMETRY_PATH = "/metrics"
DEFAULT_CGROUP_ROOT = "/sys/fs/cgroup"
DEFAULT_CONFIG_PATH = "/etc/cgroupv2-exporter/config.conf"
