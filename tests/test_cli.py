import io

import pytest
from rich.console import Console

from qrcextract import ResourceExtractor, config, main

PADDING = b'\xcc' * 32


def write_image(tmp_path, container):
    """Lay the three buffers out back to back, behind some unrelated bytes."""
    image = PADDING + container.tree + container.names + container.data
    path = tmp_path / 'image.bin'
    path.write_bytes(image)

    tree = len(PADDING)
    names = tree + len(container.tree)
    data = names + len(container.names)
    return path, ['--tree', hex(tree), '--names', hex(names), '--data', str(data),
                  '--tree-size', str(len(container.tree)), '--names-size', str(len(container.names)),
                  '-f', str(container.version)]


def test_extract_from_image(tmp_path, nested_container):
    image, offsets = write_image(tmp_path, nested_container)
    out = tmp_path / 'out' / 'nested'

    assert main([str(image), *offsets, '-o', str(out)]) == 0
    assert (out / '__root__' / 'a' / 'b' / 'c.txt').read_bytes() == b'hello from c\n'


def test_output_base_from_environment(tmp_path, nested_container, monkeypatch):
    image, offsets = write_image(tmp_path, nested_container)
    monkeypatch.setenv(config.ENV_OUTPUT_BASE, str(tmp_path / 'env'))
    monkeypatch.setenv(config.ENV_ROOT_NAME, 'qrc')

    assert main([str(image), *offsets]) == 0
    assert (tmp_path / 'env' / 'qrc' / 'readme.txt').exists()


def test_list_mode_writes_nothing(tmp_path, nested_container, capsys):
    image, offsets = write_image(tmp_path, nested_container)
    out = tmp_path / 'out'

    assert main([str(image), *offsets, '-o', str(out), '-m', 'List']) == 0
    assert not out.exists()
    assert 'c.txt' in capsys.readouterr().out


def test_broken_container_exits_with_error(tmp_path, build_container):
    container = build_container({'file': b'data'})
    image, offsets = write_image(tmp_path, container)
    # cut the data blob short
    offsets += ['--data-size', '2']

    assert main([str(image), *offsets, '-o', str(tmp_path / 'out')]) == 1


def test_offset_outside_image_is_a_usage_error(tmp_path, nested_container):
    image, _ = write_image(tmp_path, nested_container)
    with pytest.raises(SystemExit):
        main([str(image), '--tree', '0x100000', '--names', '0', '--data', '0', '-o', str(tmp_path)])


def test_extractor_slices_are_bounded(tmp_path, nested_container):
    image = PADDING + nested_container.tree + nested_container.names + nested_container.data
    extractor = ResourceExtractor(
        image, nested_container.version,
        len(PADDING), len(PADDING) + len(nested_container.tree),
        len(PADDING) + len(nested_container.tree) + len(nested_container.names),
        tmp_path, tree_size=len(nested_container.tree), console=Console(file=io.StringIO()))

    assert len(extractor.session.tree) == len(nested_container.tree)
    assert len(extractor.session.data) == len(nested_container.data)
    assert extractor.outputListing() == 5


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

def test_config_precedence():
    env = {config.ENV_OUTPUT_BASE: '/from/env', config.ENV_ROOT_NAME: 'envroot'}

    assert config.output_base('/from/cli', env) == '/from/cli'
    assert config.output_base(None, env) == '/from/env'
    assert config.output_base(None, {}) == config.DEFAULT_OUTPUT_BASE
    assert config.root_name('cli', env) == 'cli'
    assert config.root_name(None, env) == 'envroot'
    assert config.root_name(None, {}) == config.DEFAULT_ROOT_NAME
