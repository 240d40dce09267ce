import logging
from rich.logging import RichHandler
from rich.console import Console
from rich.markup import escape

import argparse
import os, pathlib
from enum import Enum

from qrcextract import config
from qrcextract.errors import ExtractionError
from qrcextract.resource.session import ExtractionSession
from qrcextract.resource.walker import TreeWalker


class ResourceExtractor(object):
    Mode = Enum('Mode', ['Extract', 'List'])

    def __init__(self, image, version, tree_offset, names_offset, data_offset, outputfolder,
                 tree_size=None, names_size=None, data_size=None, root_name=None, console=None):
        self.console = console or setup_logging()
        self.output = outputfolder

        self.image = memoryview(image).toreadonly()
        tree = self.slice('tree', tree_offset, tree_size)
        names = self.slice('names', names_offset, names_size)
        data = self.slice('data', data_offset, data_size)

        logging.info(f'Format version: {version}')
        logging.info('Tree: 0x{:x} ({} bytes)'.format(tree_offset, len(tree)))
        logging.info('Names: 0x{:x} ({} bytes)'.format(names_offset, len(names)))
        logging.info('Data: 0x{:x} ({} bytes)'.format(data_offset, len(data)))

        self.session = ExtractionSession(version, tree, names, data, outputfolder,
                                         root_name=config.root_name(root_name))
        self.walker = TreeWalker(self.session)

    def slice(self, what, offset, size=None):
        """Read-only view of one buffer; without a size it runs to the end of the image."""
        if offset < 0 or offset > len(self.image):
            raise ValueError(f'{what} offset 0x{offset:x} is outside the image ({len(self.image)} bytes)')
        if size is None:
            return self.image[offset:]
        if size < 0 or offset + size > len(self.image):
            raise ValueError(f'{what} buffer of {size} bytes at 0x{offset:x} is outside the image')
        return self.image[offset:offset + size]

    def extract(self, index=0):
        result = self.walker.walk(index)
        for diagnostic in result.diagnostics:
            self.console.print(f"[yellow]![/yellow] {diagnostic}")
        self.console.print(f"[green]✓[/green] Extracted {result.directories} directories and "
                           f"{result.files} files ({result.bytes_written} bytes) to {self.output}")
        return result

    def outputListing(self, index=0):
        """Print the tree without writing anything."""
        count = 0
        for entry in self.walker.iter_entries(index):
            node = entry.node
            relative = entry.path.relative_to(self.session.output_base)
            if node.is_directory:
                self.console.print(f"{entry.index:04d} [bold]{escape(str(relative))}/[/bold] "
                                   f"({node.child_count} children)", markup=True, highlight=False)
            else:
                self.console.print(f"{entry.index:04d} {relative} "
                                   f"(flags {node.describe_flags()}, locale {node.locale:04x}, data 0x{node.data_offset:x})",
                                   markup=False, highlight=False)
            count += 1
        self.console.print(f"[green]✓[/green] {count} entries")
        return count


def setup_logging(level=logging.INFO):
    console = Console()
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=True
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich_handler]
    )

    return console


def number(value):
    try:
        return int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number '{value}', use decimal or 0x-prefixed hex")


def build_parser():
    parser = argparse.ArgumentParser(add_help=True, description='Extract compiled Qt resources embedded in a binary image', formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument('image', type=argparse.FileType('rb'), help="Path to the binary or memory dump holding the resource buffers.")
    parser.add_argument('--tree', required=True, type=number, help="Offset of the tree buffer in the image.")
    parser.add_argument('--names', required=True, type=number, help="Offset of the name table in the image.")
    parser.add_argument('--data', required=True, type=number, help="Offset of the data blob in the image.")
    parser.add_argument('--tree-size', type=number, help="Size of the tree buffer. Defaults to the rest of the image.")
    parser.add_argument('--names-size', type=number, help="Size of the name table. Defaults to the rest of the image.")
    parser.add_argument('--data-size', type=number, help="Size of the data blob. Defaults to the rest of the image.")
    parser.add_argument('-f', '--format-version', type=int, choices=config.SUPPORTED_VERSIONS, default=2, help="Resource format version, selects the tree record size. Defaults to 2.")
    parser.add_argument('-r', '--root', type=number, default=0, help="Index of the node to start from. Defaults to the root (0).")
    parser.add_argument('--root-name', help=f"Directory name used for the root node. Defaults to ${config.ENV_ROOT_NAME} or '{config.DEFAULT_ROOT_NAME}'.")
    parser.add_argument('-o', '--output', required=False, type=pathlib.Path, help=f"Path to an output folder. Folder will be created if it doesn't exist. Defaults to ${config.ENV_OUTPUT_BASE} or the current directory.")
    parser.add_argument('-m', '--mode', required=False, help="Extract writes the resource tree to the output folder, List only prints it.", choices=ResourceExtractor.Mode.__members__, default='Extract')
    parser.add_argument('-v', '--verbose', action='store_true', help="Log every node while walking the tree.")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    console = setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    output = pathlib.Path(config.output_base(args.output))
    mode = ResourceExtractor.Mode[args.mode]

    if mode == ResourceExtractor.Mode.Extract:
        if not os.path.exists(output):
            try:
                os.makedirs(output)
            except OSError as e:
                logging.error(f"Unable to create output directory '{output}': {e.strerror}")
                return 1

        if not os.path.isdir(output):
            logging.warning(f"Path '{output}' does not exist or is not a folder.")
            parser.print_help()
            return 1

    with args.image as fh:
        image = fh.read()

    try:
        extractor = ResourceExtractor(image, args.format_version, args.tree, args.names, args.data, output,
                                      tree_size=args.tree_size, names_size=args.names_size, data_size=args.data_size,
                                      root_name=args.root_name, console=console)
    except ValueError as e:
        parser.error(str(e))

    try:
        if mode == ResourceExtractor.Mode.List:
            extractor.outputListing(args.root)
        else:
            extractor.extract(args.root)
    except ExtractionError as e:
        logging.error(escape(str(e)))
        return 1
    finally:
        extractor.session.release()

    return 0

if __name__ == '__main__':
    raise SystemExit(main())
