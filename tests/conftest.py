"""Shared pytest fixtures for restream tests."""
import os
import sys
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Generator, NamedTuple

import pytest
import yaml

from restream.loader.hooks import MetaPathHooks
from restream.stream.channel import ChannelRegistry
from restream.stream.host import StreamHost


class SamplePackage(NamedTuple):
    """Importable package created for a single test."""

    name: str
    root: Path
    site: Path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests (symlinks resolved)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def source_file(temp_dir: Path) -> Path:
    """A plain source file containing b"hello"."""
    path = temp_dir / "module.py"
    path.write_bytes(b"hello")
    return path


@pytest.fixture
def host() -> StreamHost:
    """Stream host isolated from the process-wide one."""
    return StreamHost()


@pytest.fixture
def registry(host: StreamHost) -> ChannelRegistry:
    """Channel registry bound to the isolated host."""
    return ChannelRegistry(host=host)


@pytest.fixture
def meta_path() -> list:
    """Stand-in for sys.meta_path."""
    return []


@pytest.fixture
def hooks(meta_path: list) -> MetaPathHooks:
    """Meta path hooks that never touch the interpreter's import state."""
    return MetaPathHooks(meta_path=meta_path)


@pytest.fixture
def sample_package(temp_dir: Path, monkeypatch) -> Generator[SamplePackage, None, None]:
    """Create a uniquely named package on sys.path.

    Layout:
        <name>/__init__.py   FLAG = 'package'
        <name>/views.py      GREETING = 'hello'
        <name>/settings.py   Jinja2 template setting DEBUG
    """
    name = f"sample_{uuid.uuid4().hex[:8]}"
    site = temp_dir / "site"
    root = site / name
    root.mkdir(parents=True)

    (root / "__init__.py").write_text("FLAG = 'package'\n")
    (root / "views.py").write_text("GREETING = 'hello'\n")
    (root / "settings.py").write_text(
        "{% if DEBUG %}DEBUG = True{% else %}DEBUG = False{% endif %}\n"
    )

    monkeypatch.syspath_prepend(str(site))

    yield SamplePackage(name=name, root=root, site=site)

    for module in [m for m in sys.modules if m == name or m.startswith(name + ".")]:
        del sys.modules[module]


@pytest.fixture
def sample_rules(sample_package: SamplePackage) -> Dict[str, Any]:
    """Configuration routing the sample package's views module."""
    return {
        "restream": {
            "loader": {"vendor_dir": str(sample_package.site / "vendor")},
            "rules": [
                {
                    "name": "greeting",
                    "match": {"namespace": sample_package.name, "file_name": "views"},
                    "transforms": [
                        {"type": "replace", "pattern": "hello", "replacement": "bonjour"},
                    ],
                }
            ],
        }
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_rules: Dict[str, Any]) -> Path:
    """YAML configuration file holding sample_rules."""
    path = temp_dir / "restream.yaml"
    with open(path, "w") as f:
        yaml.dump(sample_rules, f)
    return path
