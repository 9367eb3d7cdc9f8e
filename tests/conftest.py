from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from save_factory import build_source_league, build_target_league  # noqa: E402


@pytest.fixture
def target_db(tmp_path: Path) -> Path:
    return build_target_league(tmp_path / "League01.sqlite")


@pytest.fixture
def source_db(tmp_path: Path) -> Path:
    return build_source_league(tmp_path / "League02.sqlite")
