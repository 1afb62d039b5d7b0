import argparse
import logging

from .curses_client import run_curses_client
from .settings import Settings, parse_log_level

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="pyscenedit", description="Console scene editor client")
    parser.add_argument("--endpoint", help="GraphQL endpoint of the scene service")
    parser.add_argument("--ws", dest="subscription_url", help="WebSocket URL for subscriptions")
    parser.add_argument("--render-after-create", action="store_true",
                        help="Wait for the created object before requesting a render")
    parser.add_argument("--log-file", default="pyscenedit.log")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        level = parse_log_level(args.log_level) if args.log_level else settings.log_level
    except ValueError as e:
        parser.error(str(e))
    if args.endpoint:
        settings.set_endpoint(args.endpoint)
    if args.subscription_url:
        settings.subscription_url = args.subscription_url
    if args.render_after_create:
        settings.render_after_create = True

    # curses owns the terminal, so logs go to a file.
    logging.basicConfig(filename=args.log_file, level=level, format=LOG_FORMAT)
    logging.getLogger(__name__).info(f"Starting with {settings!r}")
    run_curses_client(settings)


if __name__ == "__main__":
    main()
