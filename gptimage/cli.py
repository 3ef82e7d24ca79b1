"""Command-line front-end."""

from __future__ import annotations

import argparse
import logging
import sys
from uuid import UUID

from .gpt import PartitionAttributes, PartitionType
from .image import new_protective_mbr, new_table, write_header
from .info import GptInfo, gpt_info

__all__ = ['build_parser', 'main']


log = logging.getLogger(__name__)


def _type_name(guid: UUID) -> str:
    try:
        return PartitionType(guid).name
    except ValueError:
        return str(guid)


def _attribute_names(attributes: int) -> str:
    names = [flag.name for flag in PartitionAttributes if attributes & flag.value]
    return ','.join(names) or '-'


def _format_info(info: GptInfo) -> str:
    header = info.header
    lines = [
        f'Disk GUID: {header.disk_guid}',
        f'Usable LBA: {header.first_usable_lba} - {header.last_usable_lba}',
        f'Partition entries: {header.number_of_partition_entries} x '
        f'{header.size_of_partition_entry} bytes',
    ]
    for index, entry in enumerate(info.partition_entry_array, 1):
        if entry.empty:
            continue
        lines.append(
            f'[{index}] LBA {entry.starting_lba} - {entry.ending_lba} '
            f'type={_type_name(entry.partition_type_guid)} '
            f'attributes={_attribute_names(entry.attributes)} '
            f'guid={entry.unique_partition_guid} name={entry.partition_name!r}'
        )
    return '\n'.join(lines)


def _cmd_info(args: argparse.Namespace) -> int:
    with open(args.image, 'rb') as f:
        info = gpt_info(f)
    print(repr(info) if args.debug else _format_info(info))
    return 0


def _cmd_range(args: argparse.Namespace) -> int:
    with open(args.image, 'rb') as f:
        start, end = gpt_info(f).first_partition_byte_range()
    print(f'{start} {end}')
    return 0


def _cmd_create(args: argparse.Namespace) -> int:
    size = args.size

    if args.mbr_only:
        if args.output is None:
            write_header(sys.stdout.buffer, size)
            sys.stdout.buffer.flush()
        else:
            mbr = new_protective_mbr(size)
            with open(args.output, 'wb') as f:
                f.write(bytes(mbr))
        return 0

    # Built before the output file is truncated
    table = new_table(size, disk_guid=args.disk_guid, partition_name=args.name)
    log.info(f'Disk size: {table.header.alternate_lba + 1} logical blocks')
    with open(args.output, 'wb') as f:
        table.write_to(f)
    start, end = table.partition_byte_range()
    print(f'{start} {end}')
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='gptimage', description='Inspect and create GPT disk images'
    )
    p.add_argument(
        '-v', '--verbose', action='store_true', help='print debugging messages'
    )
    sub = p.add_subparsers(dest='cmd', required=True)

    info = sub.add_parser('info', help='Print the partition table of a disk image')
    info.add_argument('-i', '--image', required=True, help='path to disk image')
    info.add_argument(
        '-d', '--debug', action='store_true', help='print all decoded structures'
    )
    info.set_defaults(func=_cmd_info)

    range_ = sub.add_parser(
        'range', help='Print the byte range of the first partition of a disk image'
    )
    range_.add_argument('-i', '--image', required=True, help='path to disk image')
    range_.set_defaults(func=_cmd_range)

    create = sub.add_parser(
        'create', help='Write the partition table of a new single-partition image'
    )
    create.add_argument(
        '-s', '--size', required=True, type=int, help='partition size in bytes'
    )
    create.add_argument(
        '-o', '--output', help='output file path (omit for stdout with --mbr-only)'
    )
    create.add_argument(
        '--mbr-only', action='store_true', help='only write the protective MBR'
    )
    create.add_argument('-n', '--name', default='', help='partition name')
    create.add_argument('--disk-guid', type=UUID, help='disk GUID (default: random)')
    create.set_defaults(func=_cmd_create)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.cmd == 'create' and args.output is None and not args.mbr_only:
        parser.error('argument -o/--output is required unless --mbr-only is given')
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    try:
        return int(args.func(args))
    except (ValueError, EOFError, OSError) as e:
        print(f'error: {e}', file=sys.stderr)
        return 1
