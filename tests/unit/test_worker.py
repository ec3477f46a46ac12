import pytest

from contact_importer.jobs import worker


def test_run_worker_runs_job(monkeypatch):
    called = {"ok": False}

    def dummy_job():
        called["ok"] = True
        return "done"

    monkeypatch.setitem(worker.JOB_REGISTRY, "dummy", dummy_job)

    assert worker.run_worker("dummy") == "done"
    assert called["ok"] is True


def test_run_worker_unknown_job():
    with pytest.raises(ValueError):
        worker.run_worker("missing")


def test_check_extraction_job():
    contacts = worker.run_worker("check_extraction")

    assert {c["email"] for c in contacts} == {
        "john.doe@example.com",
        "jane.smith@company.org",
        "mary@test.co.uk",
        "support@help.net",
    }


def test_store_api_key_requires_environment(monkeypatch):
    monkeypatch.setattr(worker.settings, "BREVO_API_KEY", None)

    with pytest.raises(ValueError):
        worker.store_api_key()
