import argparse
import logging
import sys
import threading

from linkshelf import create_app
from linkshelf.client import BookmarkView, StoreClient
from linkshelf.client.presentation import count_label, render_line
from linkshelf.config import ClientConfig

log = logging.getLogger("werkzeug")
log.disabled = True


def serve(args) -> None:
    cli = sys.modules.get("flask.cli")
    if cli is not None:
        cli.show_server_banner = lambda *x: None
    app = create_app()
    print(f"LinkShelf starting on http://{args.host}:{args.port}", flush=True)
    app.run(host=args.host, port=args.port, debug=False)


def store_from_args(args, transport=None) -> StoreClient:
    return StoreClient(
        args.api_url or ClientConfig.API_URL,
        args.token or ClientConfig.API_TOKEN,
        timeout=ClientConfig.STORE_REQUEST_TIMEOUT,
        transport=transport,
    )


def watch(args) -> None:
    logging.basicConfig(level=logging.INFO)

    def show(bookmarks):
        print(f"\n{count_label(len(bookmarks))}")
        for bookmark in bookmarks:
            print(f"  {render_line(bookmark)}")
        sys.stdout.flush()

    with store_from_args(args) as store:
        with BookmarkView.from_config(store, ClientConfig) as view:
            print(f"Watching bookmarks of {view.user.username}", flush=True)
            unsubscribe = view.container.subscribe(show)
            show(view.bookmarks)
            try:
                threading.Event().wait()
            except KeyboardInterrupt:
                pass
            finally:
                unsubscribe()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="linkshelf")
    sub = p.add_subparsers(dest="command")

    serve_p = sub.add_parser("serve", help="run the bookmark store server")
    serve_p.add_argument("--host", default="0.0.0.0")
    serve_p.add_argument("--port", type=int, default=8072)
    serve_p.set_defaults(func=serve)

    watch_p = sub.add_parser("watch", help="print a live bookmark list")
    watch_p.add_argument("--api-url", default=None)
    watch_p.add_argument("--token", default=None)
    watch_p.set_defaults(func=watch)
    return p


def main(argv=None) -> None:
    p = build_parser()
    args = p.parse_args(argv)
    if args.command is None:
        args = p.parse_args(["serve"])
    args.func(args)


if __name__ == "__main__":
    main()
