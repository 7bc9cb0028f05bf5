"""テスト実行時にsrcをパスへ追加してパッケージを解決する。"""

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """srcディレクトリをimportパスに追加する。"""
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def binding():
    """Toy binding-energy tables (keV) for Z=5 and Z=6 with K and L shells."""
    from decay.binding import BindingEnergyLibrary, BindingEnergyTable

    return BindingEnergyLibrary(
        [
            BindingEnergyTable(Z=5, name="B", shells=[[10.0], [2.0, 1.5, 1.0]]),
            BindingEnergyTable(Z=6, name="C", shells=[[12.0], [2.5, 1.8, 1.2]]),
        ]
    )
