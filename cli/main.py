import argparse
import json
import sys

from core.config import settings
from core.log import configure_logging
from probers.http_probe import http_get
from probers.tls_fingerprint import tls_probe
from runtime.override import HostOverride


def _print(obj):
    print(json.dumps(obj, indent=2, default=str))


def cmd_lookup(args):
    override = HostOverride(path=args.config)
    options = {"family": args.family, "all": args.all}
    try:
        result, family = override.resolve(args.host, options)
    except OSError as exc:
        _print({"host": args.host, "error": str(exc)})
        return 1
    overridden = args.host in override.book and override.book[args.host].has_addresses()
    if args.all:
        _print({"host": args.host, "addresses": result, "overridden": overridden})
    else:
        _print({"host": args.host, "address": result, "family": family, "overridden": overridden})
    return 0


def cmd_check(args):
    override = HostOverride(path=args.config)
    pinning_only = args.pinning_only or settings.check_pinning_only
    try:
        probe = tls_probe(
            args.host, args.port, override=override, timeout=settings.tls_timeout_s, check_pinning_only=pinning_only
        )
    except OSError as exc:
        # includes handshake-time chain verification failures
        _print({"host": args.host, "ok": False, "error": str(exc)})
        return 1
    err = override.check_server_identity(args.host, probe["certificate"], check_pinning_only=pinning_only)
    _print(
        {
            "host": args.host,
            "address": probe["address"],
            "fingerprint": probe["certificate"]["fingerprint"],
            "pins": list(override.validator.pins_for(args.host)),
            "ok": err is None,
            "code": getattr(err, "code", None),
            "error": str(err) if err is not None else None,
        }
    )
    return 0 if err is None else 2


def cmd_fetch(args):
    override = HostOverride(path=args.config)
    pinning_only = args.pinning_only or settings.check_pinning_only
    try:
        meta, _ = http_get(args.host, args.port, override=override, path=args.path, check_pinning_only=pinning_only)
    except OSError as exc:
        _print({"host": args.host, "ok": False, "code": getattr(exc, "code", None), "error": str(exc)})
        return 2
    _print(dict(meta, host=args.host, ok=True))
    return 0


def cmd_hosts(args):
    override = HostOverride(path=args.config)
    _print(override.book.as_dict())
    return 0


def cmd_verify(args):
    config = args.config or settings.associations_file
    try:
        override = HostOverride(path=args.config, strict=True)
    except (OSError, ValueError) as exc:
        _print({"config": config, "ok": False, "error": str(exc)})
        return 1
    _print({"config": config, "hosts": len(override.book), "ok": True})
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Hostname override and certificate pinning")
    parser.add_argument("--config", default=None, help="association list (default: netxrc.json)")
    parser.add_argument("--debug", action="store_true", default=False)
    sub = parser.add_subparsers()

    p_lookup = sub.add_parser("lookup", help="Resolve a host through the association list")
    p_lookup.add_argument("host")
    p_lookup.add_argument("--family", type=int, choices=(0, 4, 6), default=0)
    p_lookup.add_argument("--all", action="store_true", default=False, help="return every address")
    p_lookup.set_defaults(func=cmd_lookup)

    p_check = sub.add_parser("check", help="Handshake with a host and validate its certificate")
    p_check.add_argument("host")
    p_check.add_argument("--port", type=int, default=443)
    p_check.add_argument("--pinning-only", action="store_true", default=False, help="skip hostname/expiry checks")
    p_check.set_defaults(func=cmd_check)

    p_fetch = sub.add_parser("fetch", help="HTTPS GET through the override with pin enforcement")
    p_fetch.add_argument("host")
    p_fetch.add_argument("--port", type=int, default=443)
    p_fetch.add_argument("--path", default="/")
    p_fetch.add_argument("--pinning-only", action="store_true", default=False)
    p_fetch.set_defaults(func=cmd_fetch)

    p_hosts = sub.add_parser("hosts", help="Show the normalized association list")
    p_hosts.set_defaults(func=cmd_hosts)

    p_verify = sub.add_parser("verify", help="Load the association list in strict mode")
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args(argv)
    configure_logging(args.debug or settings.debug)
    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
