import os

import pytest

from gridview import config as config_module
from gridview.views.core import FieldDescriptor


@pytest.fixture
def people():
    """Sample employee records for testing."""
    return [
        {
            "id": 1,
            "name": "Ann",
            "dept": "Engineering",
            "salary": 72000,
            "hired": "2019-03-01",
            "skills": ["python", "sql"],
            "remote": True,
        },
        {
            "id": 2,
            "name": "bob",
            "dept": "Sales",
            "salary": 48000,
            "hired": "2021-07-15",
            "skills": ["negotiation"],
            "remote": False,
        },
        {
            "id": 3,
            "name": "Cleo",
            "dept": "Engineering",
            "salary": 95000,
            "hired": "2016-11-30",
            "skills": ["go", "python", "k8s"],
            "remote": False,
        },
        {
            "id": 4,
            "name": "Dev",
            "dept": None,
            "salary": None,
            "hired": None,
            "skills": [],
            "remote": True,
        },
        {
            "id": 5,
            "name": "Eve",
            "dept": "Sales",
            "salary": 51000,
            "hired": "2020-01-10",
            "skills": None,
            "remote": True,
        },
    ]


@pytest.fixture
def people_fields():
    """Field descriptors matching the sample employee records."""
    return [
        FieldDescriptor("id", "number"),
        FieldDescriptor("name", "string", header="Name"),
        FieldDescriptor("dept", "string", header="Department"),
        FieldDescriptor("salary", "currency", header="Salary"),
        FieldDescriptor("hired", "date", header="Hired"),
        FieldDescriptor("skills", "collection", header="Skills"),
        FieldDescriptor("remote", "boolean", header="Remote"),
    ]


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Run with an empty home and working directory and no GRIDVIEW_ variables."""
    for key in list(os.environ.keys()):
        if key.startswith("GRIDVIEW_"):
            monkeypatch.delenv(key, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    monkeypatch.setattr(config_module, "_config", None)
    yield tmp_path
    config_module._config = None
