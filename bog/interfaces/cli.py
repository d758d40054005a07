from __future__ import annotations
import argparse, sys, webbrowser
from pathlib import Path
from typing import Optional, Sequence
from dotenv import find_dotenv, load_dotenv
from bog.core import BogWorkspace, BogConfig, BogError
from bog.core.files import staged_files
from bog.core.logging import configure


def _ask(prompt: str) -> Optional[str]:
    try:
        return input(prompt).strip()
    except EOFError:
        return None


def _confirm_name(proposal: str, conflict: Path) -> Optional[str]:
    answer = _ask(f"{conflict.name} exists. New name [{proposal}]: ")
    if answer is None:
        return None
    return answer or proposal


def _choose(candidates: Sequence[Path]) -> Optional[Path]:
    for i, c in enumerate(candidates, start=1):
        print(f"{i}) {c.name}")
    answer = _ask("File number: ")
    if not answer or not answer.isdigit() or not 1 <= int(answer) <= len(candidates):
        return None
    return candidates[int(answer) - 1]


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def cmd_files(ws: BogWorkspace, args) -> int:
    if args.choose:
        print(ws.file_for(args.citekey, chooser=_choose))
    else:
        for p in ws.files_for(args.citekey):
            print(p)
    return 0


def cmd_bib(ws: BogWorkspace, args) -> int:
    loc = ws.bib_for(args.citekey)
    print(f"{loc.path}:{loc.line_number}")
    return 0


def cmd_heading(ws: BogWorkspace, args) -> int:
    for doc, heading in ws.heading_for(args.citekey):
        print(f"{doc.source}:{_line_of(doc.text, heading.start)}: {heading.title}")
    return 0


def cmd_at(ws: BogWorkspace, args) -> int:
    key = ws.citekey_at_point(Path(args.file), args.position)
    if key is None:
        print(f"error: no citekey at {args.file}:{args.position}", file=sys.stderr)
        return 1
    print(key)
    return 0


def cmd_citekeys(ws: BogWorkspace, args) -> int:
    if args.headings:
        keys = ws.heading_citekeys()
    elif args.files:
        keys = ws.file_citekeys()
    elif args.bibs:
        keys = ws.bib_citekeys()
    else:
        keys = ws.all_citekeys()
    print("\n".join(sorted(keys)))
    return 0


def cmd_orphans(ws: BogWorkspace, args) -> int:
    for source, keys in ws.orphans().items():
        print(source)
        for k in keys:
            print(f"  {k}")
    return 0


def cmd_duplicates(ws: BogWorkspace, args) -> int:
    for key, places in ws.duplicates().items():
        print(key)
        for source, title in places:
            print(f"  {source}: {title}")
    return 0


def cmd_search(ws: BogWorkspace, args) -> int:
    matches = ws.search_notes_for_citekey(args.pattern) if args.citekey else ws.search_notes(args.pattern)
    for m in matches:
        print(f"{m.source}:{m.line_number}: {m.line}")
    return 0


def cmd_web(ws: BogWorkspace, args) -> int:
    url = ws.web_search_url(args.citekey)
    print(url)
    if args.open:  # pragma: no cover opens a browser
        webbrowser.open(url)
    return 0


def cmd_rename_staged(ws: BogWorkspace, args) -> int:
    if args.staged:
        if not args.citekey:
            print("error: a citekey is required with a staged file", file=sys.stderr)
            return 1
        print(ws.rename_staged_file(Path(args.staged), args.citekey, confirm=_confirm_name))
        return 0
    if not staged_files(ws.config.resolved("stage_directory")):
        print("No staged files.")
        return 0
    renamed = ws.rename_staged(lambda p: _ask(f"Citekey for {p.name} (blank skips): "), confirm=_confirm_name)
    for old, new in renamed:
        print(f"{old.name} -> {new}")
    return 0


def cmd_rename_staged_bibs(ws: BogWorkspace, args) -> int:
    for old, new in ws.rename_staged_bibs():
        print(f"{old.name} -> {new}")
    return 0


def cmd_combined_bib(ws: BogWorkspace, args) -> int:
    missing = ws.combined_bib(Path(args.output), args.citekeys or None)
    for k in missing:
        print(f"warning: no bib file for {k}", file=sys.stderr)
    print(args.output)
    return 0


def cmd_config(ws: BogWorkspace, args) -> int:
    print(ws.config.to_json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bog", description="Citekey helpers for research notes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="Log as JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("files", help="List files associated with a citekey")
    p.add_argument("citekey")
    p.add_argument("--choose", action="store_true", help="Prompt when several files match")
    p.set_defaults(func=cmd_files)

    p = sub.add_parser("bib", help="Locate the bib entry of a citekey")
    p.add_argument("citekey")
    p.set_defaults(func=cmd_bib)

    p = sub.add_parser("heading", help="Locate the note heading of a citekey")
    p.add_argument("citekey")
    p.set_defaults(func=cmd_heading)

    p = sub.add_parser("at", help="Citekey at a position of a note file (or of its heading)")
    p.add_argument("file")
    p.add_argument("position", type=int, help="Character offset")
    p.set_defaults(func=cmd_at)

    p = sub.add_parser("citekeys", help="List citekeys (default: all in notes)")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--headings", action="store_true", help="Only heading citekeys")
    group.add_argument("--files", action="store_true", help="Citekeys of files in the file directory")
    group.add_argument("--bibs", action="store_true", help="Citekeys with a bib entry")
    p.set_defaults(func=cmd_citekeys)

    p = sub.add_parser("orphans", help="Citekeys referenced in notes without a heading")
    p.set_defaults(func=cmd_orphans)

    p = sub.add_parser("duplicates", help="Citekeys bound to more than one heading")
    p.set_defaults(func=cmd_duplicates)

    p = sub.add_parser("search", help="Search notes with a regular expression")
    p.add_argument("pattern")
    p.add_argument("--citekey", action="store_true", help="Treat pattern as a citekey")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("web", help="Web search URL for a citekey")
    p.add_argument("citekey")
    p.add_argument("--open", action="store_true", help="Open the URL in a browser")
    p.set_defaults(func=cmd_web)

    p = sub.add_parser("rename-staged", help="Rename staged files to their citekey")
    p.add_argument("staged", nargs="?", help="Single staged file (default: prompt for each)")
    p.add_argument("citekey", nargs="?")
    p.set_defaults(func=cmd_rename_staged)

    p = sub.add_parser("rename-staged-bibs", help="Rename staged .bib files to their entry key")
    p.set_defaults(func=cmd_rename_staged_bibs)

    p = sub.add_parser("combined-bib", help="Write the bib entries of citekeys to one file")
    p.add_argument("output")
    p.add_argument("citekeys", nargs="*", help="Default: every citekey in the notes")
    p.set_defaults(func=cmd_combined_bib)

    p = sub.add_parser("config", help="Show the effective settings as JSON")
    p.set_defaults(func=cmd_config)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(find_dotenv(usecwd=True))
    configure("DEBUG" if args.verbose else None, True if args.log_json else None)
    try:
        ws = BogWorkspace(BogConfig.from_env())
        return args.func(ws, args)
    except (BogError, FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
