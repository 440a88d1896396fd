from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rendercaps.capabilities import (
    CapabilityRegistry,
    CapabilityScriptError,
    decode,
    decode_all,
    encode,
)
from rendercaps.config import Settings
from rendercaps.logging_config import configure_from_settings


def _load_registry(settings: Settings, source: str | None) -> CapabilityRegistry:
    registry = CapabilityRegistry(strict=settings.strict_keywords)
    location = Path(source) if source else settings.media_dir
    report = registry.bulk_load(location, settings.archive_type, settings.recursive)
    for resource, error in sorted(report.failed.items()):
        print(f"WARN: {resource}: {error}", file=sys.stderr)
    return registry


def cmd_list(settings: Settings, source: str | None) -> int:
    registry = _load_registry(settings, source)
    for name in registry.names():
        print(name)
    return 0


def cmd_show(settings: Settings, name: str, source: str | None) -> int:
    registry = _load_registry(settings, source)
    caps = registry.lookup(name)
    if caps is None:
        print(f"ERROR: no capabilities named {name!r}", file=sys.stderr)
        return 1
    sys.stdout.write(encode(caps, name))
    return 0


def cmd_check(settings: Settings, files: list[str]) -> int:
    failures = 0
    for path in files:
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
            blocks = decode_all(text, strict=settings.strict_keywords, source=path)
        except (CapabilityScriptError, UnicodeDecodeError, OSError) as exc:
            failures += 1
            print(f"FAIL: {path}: {exc}")
            continue
        names = ", ".join(name for name, _ in blocks) or "(no blocks)"
        print(f"OK: {path}: {names}")
    return 1 if failures else 0


def cmd_dump(settings: Settings, path: str, output: str | None) -> int:
    text = Path(path).read_text(encoding="utf-8-sig")
    name, caps = decode(text, strict=settings.strict_keywords, source=path)
    script = encode(caps, name)
    if output:
        Path(output).write_text(script, encoding="utf-8", newline="\n")
        print(f"OK: wrote {output}")
    else:
        sys.stdout.write(script)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rendercaps", description="Inspect .rendercaps capability scripts")
    p.add_argument("--strict", action="store_true", default=None, help="Reject unknown keywords")
    p.add_argument("--archive-type", choices=["FileSystem", "Zip"], default=None)
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--json-logs", action="store_true", help="Log as JSON")

    sub = p.add_subparsers(dest="cmd", required=True)

    ls = sub.add_parser("list", help="List capability sets in an archive")
    ls.add_argument("source", nargs="?", default=None)

    show = sub.add_parser("show", help="Print one capability set as a script")
    show.add_argument("name")
    show.add_argument("source", nargs="?", default=None)

    check = sub.add_parser("check", help="Parse scripts and report errors")
    check.add_argument("files", nargs="+")

    dump = sub.add_parser("dump", help="Rewrite a script in canonical form")
    dump.add_argument("file")
    dump.add_argument("-o", "--output", default=None)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = Settings.from_env()
    if args.strict:
        settings.strict_keywords = True
    if args.archive_type:
        settings.archive_type = args.archive_type
    if args.verbose:
        settings.log_level = "DEBUG"
    if args.json_logs:
        settings.log_json = True
    configure_from_settings(settings)

    try:
        if args.cmd == "list":
            return cmd_list(settings, args.source)
        if args.cmd == "show":
            return cmd_show(settings, args.name, args.source)
        if args.cmd == "check":
            return cmd_check(settings, args.files)
        if args.cmd == "dump":
            return cmd_dump(settings, args.file, args.output)
    except Exception as e:
        # clean, agent-friendly failure
        raise SystemExit(f"ERROR: {e}") from e
    return 2


if __name__ == "__main__":
    sys.exit(main())
