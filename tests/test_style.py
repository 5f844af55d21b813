from pathlib import Path

import pytest

import larinf

SOURCES = sorted(Path(larinf.__file__).parent.glob('*.py'))


@pytest.mark.parametrize('source', SOURCES, ids=lambda p: p.name)
def test_line_length(source):
    long_lines = [i + 1 for i, line in
                  enumerate(source.read_text().splitlines())
                  if len(line) > 79]
    assert long_lines == []
