"""Tests for the workspace-scoped segment endpoints."""
from __future__ import annotations

from mailtrack.db import models


def _create_workspace(db, name):
    workspace = models.Workspace(name=name)
    db.add(workspace)
    db.commit()
    return workspace


def _create_segment(db, workspace, name="Turquoise"):
    segment = models.Segment(workspace_id=workspace.id, name=name)
    db.add(segment)
    db.commit()
    return segment


def test_a_list_of_a_workspaces_segments_can_be_retrieved(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.get(f"/workspaces/{workspace.id}/segments")

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]] == [segment.name]


def test_segments_of_other_workspaces_are_not_listed(client, db_session, workspace):
    other = _create_workspace(db_session, "Other")
    _create_segment(db_session, other, "Hidden")

    response = client.get(f"/workspaces/{workspace.id}/segments")

    assert response.json() == {"data": []}


def test_a_single_segment_can_be_retrieved(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.get(f"/workspaces/{workspace.id}/segments/{segment.id}")

    assert response.status_code == 200
    assert response.json()["data"]["name"] == segment.name


def test_a_segment_from_another_workspace_is_not_found(client, db_session, workspace):
    other = _create_workspace(db_session, "Other")
    segment = _create_segment(db_session, other)

    response = client.get(f"/workspaces/{workspace.id}/segments/{segment.id}")

    assert response.status_code == 404


def test_a_new_segment_can_be_added(client, db_session, workspace):
    response = client.post(f"/workspaces/{workspace.id}/segments", json={"name": "Maroon"})

    assert response.status_code == 201
    assert response.json()["data"]["name"] == "Maroon"
    assert db_session.query(models.Segment).filter(models.Segment.name == "Maroon").count() == 1


def test_a_segment_can_be_updated(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.put(f"/workspaces/{workspace.id}/segments/{segment.id}", json={"name": "newName"})

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "newName"
    names = [s.name for s in db_session.query(models.Segment).all()]
    assert names == ["newName"]


def test_a_segment_can_keep_its_own_name_on_update(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.put(f"/workspaces/{workspace.id}/segments/{segment.id}", json={"name": segment.name})

    assert response.status_code == 200


def test_a_segment_can_be_deleted(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.delete(f"/workspaces/{workspace.id}/segments/{segment.id}")

    assert response.status_code == 204
    assert db_session.query(models.Segment).count() == 0


def test_a_segment_name_must_be_unique_for_a_workspace(client, db_session, workspace):
    segment = _create_segment(db_session, workspace)

    response = client.post(f"/workspaces/{workspace.id}/segments", json={"name": segment.name})

    assert response.status_code == 422
    assert any(error["loc"] == ["body", "name"] for error in response.json()["detail"])
    assert db_session.query(models.Segment).filter(models.Segment.name == segment.name).count() == 1


def test_renaming_onto_an_existing_name_is_rejected(client, db_session, workspace):
    _create_segment(db_session, workspace, "Taken")
    segment = _create_segment(db_session, workspace, "Free")

    response = client.put(f"/workspaces/{workspace.id}/segments/{segment.id}", json={"name": "Taken"})

    assert response.status_code == 422


def test_two_workspaces_can_have_the_same_name_for_a_segment(client, db_session, workspace):
    other = _create_workspace(db_session, "Other")
    segment = _create_segment(db_session, workspace)

    response = client.post(f"/workspaces/{other.id}/segments", json={"name": segment.name})

    assert response.status_code == 201
    assert db_session.query(models.Segment).filter(models.Segment.name == segment.name).count() == 2


def test_a_segment_needs_a_name(client, workspace):
    response = client.post(f"/workspaces/{workspace.id}/segments", json={"name": ""})

    assert response.status_code == 422


def test_unknown_workspace_is_not_found(client):
    assert client.get("/workspaces/999/segments").status_code == 404
