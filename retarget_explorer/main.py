import argparse
from .run import run_with_settings
from .config import Settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Difficulty retarget explorer API")
    p.add_argument("--network", default=None, help="mainnet, testnet, regtest, ...")
    p.add_argument("--rpcip", default=None)
    p.add_argument("--rpcport", type=int, default=None)
    p.add_argument("--rpcuser", default=None)
    p.add_argument("--rpcpass", default=None)
    p.add_argument("--api-host", default=None)
    p.add_argument("--api-port", type=int, default=None)
    p.add_argument("--cache-blocks", type=int, default=None)
    p.add_argument("--poll-interval", type=float, default=None)
    p.add_argument("-v", "--verbose", "--debug", action="store_true", dest="verbose")
    p.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    p.add_argument("--enable-zmq", action="store_true", help="Enable ZMQ notifications")
    p.add_argument(
        "--disable-zmq", action="store_true", help="Disable ZMQ notifications"
    )
    p.add_argument("--node-zmq-endpoint", default=None, help="Node ZMQ endpoint")
    return p


def settings_from_args(argv=None) -> Settings:
    args = build_parser().parse_args(argv)

    s = Settings()
    for k, v in vars(args).items():
        if k == "enable_zmq":
            if v:
                s.enable_zmq = True
        elif k == "disable_zmq":
            if v:
                s.enable_zmq = False
        elif k == "verbose":
            if v and args.log_level is None:
                s.log_level = "DEBUG"
        elif v is not None:
            setattr(s, k, v)
    return s


def main():
    s = settings_from_args()
    if not s.rpcuser or not s.rpcpass:
        raise SystemExit(
            "Node RPC credentials are required (--rpcuser/--rpcpass or env vars)."
        )
    run_with_settings(s)


if __name__ == "__main__":
    main()
