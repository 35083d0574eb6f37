"""CLI interface for diwentiff -- info, concat, paginate subcommands."""

import sys
from pathlib import Path

import click

import diwentiff
from diwentiff.config import CodecConfig
from diwentiff.document import Tif
from diwentiff.exceptions import TiffError
from diwentiff.log import (
    cli_bold,
    cli_dim,
    cli_error,
    cli_header,
    cli_info,
    cli_separator,
    cli_success,
    cli_warning,
    configure_logging,
)
from diwentiff.tiff.tags import IMAGE_DATA_TAGS, tag_name
from diwentiff.tiff.types import BIG_ENDIAN, LITTLE_ENDIAN


def _fail(message: str):
    click.echo(cli_error(f'Error: {message}'), err=True)
    sys.exit(1)


def _load(ctx, path) -> Tif:
    try:
        return Tif.load(Path(path), config=ctx.obj['config'])
    except (TiffError, OSError) as exc:
        _fail(f'{path}: {exc}')


def _save(tif: Tif, path) -> int:
    try:
        return tif.save(Path(path))
    except (TiffError, OSError) as exc:
        _fail(f'{path}: {exc}')


@click.group()
@click.version_option(version=diwentiff.__version__, prog_name='diwentiff')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with codec settings (max_pages, strict_types, ...).')
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Library log level (logs go to stderr).')
@click.pass_context
def main(ctx, config_path, log_level):
    """diwentiff -- inspect and rewrite multi-page TIFF files."""
    configure_logging(log_level)
    ctx.ensure_object(dict)
    try:
        ctx.obj['config'] = (CodecConfig.from_json(config_path)
                             if config_path else CodecConfig.default())
    except ValueError as exc:
        _fail(f'{config_path}: {exc}')


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--verbose', '-v', is_flag=True, help='List every field of every page.')
@click.pass_context
def info(ctx, path, verbose):
    """Show the pages and fields of a TIFF file."""
    tif = _load(ctx, path)
    order = 'II (little-endian)' if tif.byte_order == LITTLE_ENDIAN else 'MM (big-endian)'

    click.echo(cli_header(f'File: {Path(path).name}'))
    click.echo(f'Byte order: {order}')
    click.echo(f'Pages: {len(tif)}')

    for i, page in enumerate(tif):
        click.echo(cli_separator())
        click.echo(cli_bold(f'Page {i}: {len(page)} field(s)'))
        for tag, chunks in page.image_data.items():
            total = sum(len(c) for c in chunks)
            click.echo(cli_info(f'  {tag_name(tag)}: {len(chunks)} chunk(s), {total} bytes'))
        for tag in IMAGE_DATA_TAGS:
            if tag in page and tag not in page.image_data:
                click.echo(cli_warning(f'  {tag_name(tag)}: image data not loaded'))
        if verbose:
            for field in page:
                click.echo(cli_dim(f'  {field}'))
                for j, sub_page in enumerate(field.sub_pages):
                    click.echo(cli_dim(f'    [{j}] {len(sub_page)} field(s)'))


@main.command()
@click.argument('output', type=click.Path(dir_okay=False))
@click.argument('sources', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False))
@click.option('--big-endian', is_flag=True, help='Write MM (big-endian) output.')
@click.pass_context
def concat(ctx, output, sources, big_endian):
    """Concatenate the pages of SOURCES into OUTPUT."""
    tif = Tif(byte_order=BIG_ENDIAN if big_endian else LITTLE_ENDIAN)
    for source in sources:
        tif.extend(_load(ctx, source))
    size = _save(tif, output)
    click.echo(cli_success(f'Wrote {len(tif)} page(s) to {output} ({size} bytes)'))


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write here instead of rewriting PATH.')
@click.pass_context
def paginate(ctx, path, output):
    """Set PageNumber (index, total) on every page."""
    tif = _load(ctx, path)
    tif.set_page_numbers()
    target = output or path
    _save(tif, target)
    click.echo(cli_success(f'Numbered {len(tif)} page(s) in {target}'))


if __name__ == '__main__':
    main()
