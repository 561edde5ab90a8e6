# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from takeoff_import.logging.init import reset_logging
from takeoff_import.models.context import ImportContext

HEADER = "DRAWING,TYPE,QTY,CMDTY CODE,SPEC,DESCRIPTION,SIZE,Comments"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """allowed_types:
  - Spool
  - Field_Weld
  - Valve
  - Instrument
  - Support
  - Pipe
  - Fitting
  - Flange
  - Tubing
  - Hose
  - Misc_Component
  - Threaded_Pipe
limits:
  max_file_bytes: 5242880
  max_rows: 10000
  max_qty: 10000
duplicate_scope: project
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def context() -> ImportContext:
    return ImportContext(project_id="proj-1", user_id="user-1", source="takeoff.csv")


@pytest.fixture()
def valid_csv() -> str:
    return "\n".join(
        [
            HEADER,
            "P-001,Valve,2,VBALU-001,ES-03,Ball valve,2,",
            "P-001,Fitting,1,FIT-010,ES-03,Elbow 90,1/2,field fit",
            "P-002,Instrument,0,INS-100,,Pressure gauge,,",
            "p-002 ,field_weld,3,FW-001,,,2,",
        ]
    ) + "\n"


@pytest.fixture()
def duplicate_csv() -> str:
    return "\n".join(
        [
            "DRAWING,TYPE,QTY,CMDTY CODE",
            "P-001,Valve,2,VTEST-001",
            "P-002,Valve,2,VTEST-001",
        ]
    ) + "\n"


@pytest.fixture(autouse=True)
def _reset_logging():
    # setup_logging binds sys.stdout at call time; start each test fresh for capsys
    reset_logging()
    yield
    reset_logging()
