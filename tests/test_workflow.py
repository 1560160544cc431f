"""Tests for the export step runner – plain callables, no network."""

import pytest

from case_manager.emr.workflow import StepStatus, Workflow


def test_steps_run_in_declaration_order_and_share_results():
    log = []

    def patient(ctx):
        log.append("patient")
        return {"patient_fhir_id": "pat-1"}

    def encounter(ctx):
        log.append("encounter")
        assert ctx["patient_fhir_id"] == "pat-1"
        return {"encounter_fhir_id": "enc-1"}

    def hpi(ctx):
        log.append("hpi")
        assert ctx["case_id"] == "case-1"
        assert ctx["encounter_fhir_id"] == "enc-1"

    def allergies(ctx):
        log.append("allergies")

    wf = Workflow("export")
    wf.add_step("patient", patient)
    wf.add_step("encounter", encounter)
    wf.add_step("hpi", hpi)
    wf.add_step("allergies", allergies)

    summary = wf.run({"case_id": "case-1"})
    assert summary["status"] == "completed"
    assert summary["error"] is None
    assert log == ["patient", "encounter", "hpi", "allergies"]


def test_first_failure_skips_every_remaining_step():
    ran = []

    def boom(ctx):
        raise RuntimeError("Failed to create condition")

    wf = Workflow("export")
    wf.add_step("patient", lambda ctx: ran.append("patient"))
    wf.add_step("chief_complaint", boom)
    wf.add_step("hpi", lambda ctx: ran.append("hpi"))

    summary = wf.run()
    assert summary["status"] == "failed"
    assert summary["error"] == "Failed to create condition"
    assert ran == ["patient"]
    assert wf.steps["chief_complaint"].status == StepStatus.FAILED
    assert wf.steps["hpi"].status == StepStatus.SKIPPED
    assert summary["steps"]["hpi"] == {"status": "skipped"}


def test_empty_workflow_completes():
    assert Workflow("empty").run()["status"] == "completed"


def test_duplicate_names_rejected():
    wf = Workflow("bad")
    wf.add_step("a", lambda ctx: None)
    with pytest.raises(ValueError, match="Duplicate"):
        wf.add_step("a", lambda ctx: None)
