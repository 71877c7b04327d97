"""Command line tools for blockio documents.

Usage:
    python -m blockio tokens FILE
    python -m blockio convert SRC DEST [--from FORMAT] [--to FORMAT]
    python -m blockio view FILE
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, RichLog, Tree

from .element import DataElement
from .errors import BlockIOError
from .formats import Format, open_reader
from .transfer import DEFAULT_ITEM_NAME, convert, iter_elements

logger = logging.getLogger("blockio")

FORMAT_CHOICES = [f.value for f in Format]


def _label(element: DataElement) -> Text:
    if element.is_start_block:
        return Text(element.name if element.name is not None else "{}", style="bold cyan")
    return Text(str(element))


class DocumentViewer(App):
    """Tree browser for one document."""

    CSS = """
    Screen {
        layout: grid;
        grid-size: 1 2;
        grid-rows: 3fr 1fr;
    }

    #document-tree {
        height: 1fr;
        padding: 0 1;
    }

    #console {
        height: 1fr;
        border-top: solid $primary;
        background: $surface-darken-1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("e", "expand_all", "Expand"),
        Binding("c", "collapse_all", "Collapse"),
    ]

    def __init__(self, path: str, format: Optional[str] = None):
        super().__init__()
        self.path = path
        self.format = format

    def compose(self) -> ComposeResult:
        yield Header()
        yield Tree(Text(self.path), id="document-tree")
        yield RichLog(id="console", highlight=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        """Load the document into the tree."""
        self.title = f"blockio - {self.path}"
        tree = self.query_one("#document-tree", Tree)
        tree.root.expand()
        try:
            count = self.populate(tree)
            self.log_message(f"Loaded {count} elements")
        except BlockIOError as e:
            self.log_message(f"[red]Error reading document: {escape(str(e))}[/]")

    def populate(self, tree: Tree) -> int:
        nodes = [tree.root]
        count = 0
        with open_reader(self.path, self.format) as reader:
            for _, element in iter_elements(reader):
                count += 1
                if element.is_start_block:
                    nodes.append(nodes[-1].add(_label(element), data=element))
                elif element.is_end_block:
                    nodes.pop()
                else:
                    nodes[-1].add_leaf(_label(element), data=element)
        return count

    def log_message(self, message: str) -> None:
        """Add a message to the console log."""
        log = self.query_one("#console", RichLog)
        log.write(message)

    def on_tree_node_highlighted(self, event: Tree.NodeHighlighted) -> None:
        element = event.node.data
        if element is None:
            return
        if element.is_leaf:
            self.log_message(
                f"{escape(str(element.name))}: {type(element.content).__name__} "
                f"{escape(repr(element.content))}"
            )
        else:
            self.log_message(f"block {escape(str(element.name))}: {len(event.node.children)} entries")

    def action_expand_all(self) -> None:
        self.query_one("#document-tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        root = self.query_one("#document-tree", Tree).root
        root.collapse_all()
        root.expand()


def print_tokens(path: str, format: Optional[str] = None, console: Optional[Console] = None) -> int:
    """Print every element of a document, indented by depth."""
    console = console or Console()
    count = 0
    with open_reader(path, format) as reader:
        for depth, element in iter_elements(reader):
            style = "" if element.is_leaf else "bold cyan"
            console.print(Text("    " * depth + str(element), style=style), soft_wrap=True)
            count += 1
    return count


def setup_logging(verbose: bool = False):
    if not logger.handlers:
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
        logger.propagate = False
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Inspect and convert blockio documents",
        prog="python -m blockio",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    tokens = subparsers.add_parser("tokens", help="Print the element stream of a document")
    tokens.add_argument("file", help="Document to read")
    tokens.add_argument("--format", choices=FORMAT_CHOICES, help="Override format detection")

    conv = subparsers.add_parser("convert", help="Re-encode a document in another format")
    conv.add_argument("source", help="Document to read")
    conv.add_argument("dest", help="Document to write")
    conv.add_argument("--from", dest="from_format", choices=FORMAT_CHOICES)
    conv.add_argument("--to", dest="to_format", choices=FORMAT_CHOICES)
    conv.add_argument(
        "--item-name",
        default=DEFAULT_ITEM_NAME,
        help=f"Name for anonymous entries (default: {DEFAULT_ITEM_NAME})",
    )

    view = subparsers.add_parser("view", help="Browse a document in a terminal UI")
    view.add_argument("file", help="Document to read")
    view.add_argument("--format", choices=FORMAT_CHOICES, help="Override format detection")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.command == "tokens":
            count = print_tokens(args.file, args.format)
            logger.debug("Printed %d elements", count)
        elif args.command == "convert":
            convert(args.source, args.dest, args.from_format, args.to_format, args.item_name)
        else:
            DocumentViewer(args.file, args.format).run()
    except BlockIOError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
