"""Command line front end: ``fdnotify send "Summary" "Body" -a ok:OK --wait``."""

import argparse
import logging
import sys

from . import hints as hintlib
from .actions import Actions
from .config import TRANSPORTS, load_settings, open_channel
from .errors import NotifyError
from .notifications import Notifications, Request
from .variant import Tag, encode

log = logging.getLogger(__name__)

_RAW_TYPES = {
    "bool": Tag.BOOL,
    "byte": Tag.BYTE,
    "int": Tag.INT32,
    "uint": Tag.UINT32,
    "int64": Tag.INT64,
    "uint64": Tag.UINT64,
    "double": Tag.DOUBLE,
    "string": Tag.STR,
    "strings": Tag.STR_ARRAY,
}


def _parse_scalar(text, tag):
    if tag is Tag.BOOL:
        lowered = text.lower()
        if lowered not in ("true", "false", "1", "0", "yes", "no"):
            raise ValueError(f"not a boolean: {text!r}")
        return lowered in ("true", "1", "yes")
    if tag is Tag.DOUBLE:
        return float(text)
    if tag is Tag.STR:
        return text
    if tag is Tag.STR_ARRAY:
        return [s for s in text.split(",") if s]
    return int(text, 0)


def parse_hint(spec):
    """
    ``NAME=VALUE`` for a known hint (``urgency=critical``,
    ``x-kde-urls=file:///a,file:///b``) or ``NAME:TYPE=VALUE`` for any other
    (``x-vendor-level:int=3``). Returns ``(name, Variant)``.
    """
    target, sep, text = spec.partition("=")
    if not sep:
        raise ValueError(f"hint {spec!r} is not NAME=VALUE")
    name, _, type_name = target.partition(":")
    if type_name:
        try:
            tag = _RAW_TYPES[type_name]
        except KeyError:
            raise ValueError(
                f"unknown hint type {type_name!r}, use one of {', '.join(_RAW_TYPES)}"
            ) from None
        return name, encode(_parse_scalar(text, tag), tag)
    key = hintlib.lookup(name)
    if key is None:
        raise ValueError(f"unknown hint {name!r}, give its type as {name}:TYPE=VALUE")
    if key.python_type is hintlib.Urgency:
        try:
            return name, key.encode(hintlib.Urgency[text.upper()])
        except KeyError:
            raise ValueError(f"urgency must be low, normal or critical, not {text!r}") from None
    if key.python_type is not None:
        raise ValueError(f"hint {name!r} cannot be given on the command line")
    return name, key.encode(_parse_scalar(text, key.type))


def _parse_action(spec):
    identifier, sep, text = spec.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"action {spec!r} is not ID:TEXT")
    return identifier, text


def build_parser():
    parser = argparse.ArgumentParser(prog="fdnotify", description=__doc__)
    parser.add_argument("--transport", choices=TRANSPORTS, help="bus binding to use")
    parser.add_argument("--config", help="settings file")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    commands = parser.add_subparsers(dest="command", required=True)

    send = commands.add_parser("send", help="show a notification and print its id")
    send.add_argument("summary")
    send.add_argument("body", nargs="?", default="")
    send.add_argument("-n", "--app-name")
    send.add_argument("-i", "--icon")
    send.add_argument("-t", "--timeout", type=int, help="milliseconds, 0 never expires")
    send.add_argument("-r", "--replace", type=int, default=0, metavar="ID")
    send.add_argument("-u", "--urgency", choices=[u.name.lower() for u in hintlib.Urgency])
    send.add_argument("-c", "--category")
    send.add_argument("-a", "--action", type=_parse_action, action="append", default=[],
                      metavar="ID:TEXT")
    send.add_argument("--hint", action="append", default=[], metavar="NAME[:TYPE]=VALUE")
    send.add_argument("-w", "--wait", action="store_true",
                      help="print the notification's signals until it is closed")

    close = commands.add_parser("close", help="close a notification")
    close.add_argument("id", type=int)

    commands.add_parser("caps", help="list the server's capabilities")
    commands.add_parser("info", help="show the server's name and version")

    inhibit = commands.add_parser("inhibit", help="hold back notifications, print a cookie")
    inhibit.add_argument("desktop_entry")
    inhibit.add_argument("reason")

    release = commands.add_parser("release", help="undo an inhibit")
    release.add_argument("cookie", type=int)
    return parser


def _send(client, settings, args):
    hints = hintlib.Hints()
    if args.urgency:
        hints.set(hintlib.URGENCY, hintlib.Urgency[args.urgency.upper()])
    if args.category:
        hints.set(hintlib.CATEGORY, args.category)
    for spec in args.hint:
        hints.set_raw(*parse_hint(spec))

    request = Request(
        summary=args.summary,
        body=args.body,
        app_name=args.app_name or settings.app_name,
        app_icon=args.icon if args.icon is not None else settings.app_icon,
        replaces_id=args.replace,
        actions=Actions(args.action),
        hints=hints,
        timeout_ms=args.timeout if args.timeout is not None else settings.timeout,
    )
    nid = client.open(request)
    print(nid)
    if not args.wait:
        return

    channel = client.channel

    def closed(nid, reason):
        print(f"closed {nid} reason={reason}")
        channel.quit()

    client.subscribe(
        nid,
        on_closed=closed,
        on_action=lambda nid, action: print(f"action {nid} {action}"),
        on_activation_token=lambda nid, token: print(f"activation-token {nid} {token}"),
        on_reply=lambda nid, message: print(f"reply {nid} {message}"),
    )
    sys.stdout.flush()
    try:
        channel.run()
    except KeyboardInterrupt:
        client.close(nid)


def run(client, settings, args):
    if args.command == "send":
        _send(client, settings, args)
    elif args.command == "close":
        client.close(args.id)
    elif args.command == "caps":
        for token in client.discover():
            print(token)
    elif args.command == "info":
        info = client.get_server_information()
        print(f"{info.name} {info.version} ({info.vendor}), specification {info.spec_version}")
    elif args.command == "inhibit":
        print(client.inhibit(args.desktop_entry, args.reason))
    elif args.command == "release":
        client.release(args.cookie)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = load_settings(args.config)
    except ValueError as e:
        parser.error(str(e))

    level = settings.log_level.upper()
    if args.verbose:
        level = "DEBUG" if args.verbose > 1 else "INFO"
    logging.basicConfig(level=level, format="%(name)s: %(levelname)s: %(message)s")

    try:
        with open_channel(args.transport or settings.transport) as channel:
            run(Notifications(channel), settings, args)
    except (NotifyError, ValueError) as e:
        print(f"fdnotify: {e}", file=sys.stderr)
        return 1
    return 0
