from dataclasses import dataclass
import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass
class Settings:
    network: str = "mainnet"
    rpcip: str = ""
    rpcport: int = 0
    rpcuser: str = ""
    rpcpass: str = ""
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"
    verbose: bool = False  # Deprecated: use log_level instead
    enable_zmq: bool = False
    node_zmq_endpoint: str = ""
    cache_blocks: int = 100
    poll_interval: float = 5.0

    def __post_init__(self):
        """Load settings from environment variables at instance creation time"""
        self.network = os.getenv("NETWORK", "mainnet")
        self.rpcip = os.getenv("NODE_RPC_HOST", "127.0.0.1")
        self.rpcport = _int_env("NODE_RPC_PORT", 7332)
        self.rpcuser = os.getenv("NODE_RPC_USER", "")
        self.rpcpass = os.getenv("NODE_RPC_PASS", "")
        self.api_host = os.getenv("API_HOST", "0.0.0.0")
        self.api_port = _int_env("API_PORT", 8080)

        # Log level configuration (LOG_LEVEL takes precedence over VERBOSE)
        log_level_env = os.getenv("LOG_LEVEL", "").upper()
        if log_level_env:
            self.log_level = log_level_env
        else:
            self.verbose = os.getenv("VERBOSE", "false").lower() == "true"
            self.log_level = "DEBUG" if self.verbose else "INFO"

        self.enable_zmq = os.getenv("ENABLE_ZMQ", "false").lower() == "true"
        zmq_endpoint_env = os.getenv("NODE_ZMQ_ENDPOINT", "")
        if zmq_endpoint_env:
            self.node_zmq_endpoint = zmq_endpoint_env
        else:
            default_zmq_port = "29332" if self.is_mainnet else "39332"
            self.node_zmq_endpoint = f"tcp://{self.rpcip}:{default_zmq_port}"

        self.cache_blocks = _int_env("CACHE_BLOCKS", 100)
        if self.cache_blocks < 2:
            self.cache_blocks = 100
        self.poll_interval = _float_env("POLL_INTERVAL", 5.0)

    @property
    def is_mainnet(self) -> bool:
        return self.network.lower() in ("mainnet", "main")

    @property
    def node_url(self) -> str:
        return f"http://{self.rpcuser}:{self.rpcpass}@{self.rpcip}:{self.rpcport}"
