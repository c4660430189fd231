import uuid

from app.adminhub.services.grant_projection import (
    normalize_module_grants,
    normalize_permission_ids,
    project_legacy_permission_ids,
    resolve_data_access,
)


def _ids(count):
    return [uuid.uuid4() for _ in range(count)]


def test_projection_keeps_only_granted_permissions():
    module_id, leads_read, leads_delete = _ids(3)
    normalized = normalize_module_grants(
        [
            {
                "module_id": str(module_id),
                "permissions": [
                    {"permission_id": str(leads_read), "granted": True},
                    {"permission_id": str(leads_delete), "granted": False},
                ],
            }
        ]
    )

    assert project_legacy_permission_ids(normalized) == {leads_read}
    assert normalized[0].has_access is True
    assert normalized[0].data_access == "team"


def test_module_access_alone_projects_nothing():
    (module_id,) = _ids(1)
    normalized = normalize_module_grants([{"module_id": str(module_id), "has_access": True, "data_access": "own"}])

    assert normalized[0].has_access is True
    assert normalized[0].data_access == "own"
    assert project_legacy_permission_ids(normalized) == set()


def test_has_access_defaults_to_false_without_granted_permissions():
    module_id, permission_id = _ids(2)
    normalized = normalize_module_grants(
        [
            {
                "module_id": module_id,
                "data_access": "all",
                "permissions": [{"permission_id": permission_id, "granted": False}],
            }
        ]
    )

    assert normalized[0].has_access is False
    assert normalized[0].data_access == "none"


def test_explicit_has_access_false_wins_over_granted_permissions():
    module_id, permission_id = _ids(2)
    normalized = normalize_module_grants(
        [
            {
                "module_id": module_id,
                "has_access": False,
                "data_access": "all",
                "permissions": [{"permission_id": permission_id, "granted": True}],
            }
        ]
    )

    assert normalized[0].has_access is False
    assert normalized[0].data_access == "none"
    assert project_legacy_permission_ids(normalized) == {permission_id}


def test_explicit_none_data_access_is_kept_with_access():
    (module_id,) = _ids(1)
    normalized = normalize_module_grants([{"module_id": module_id, "has_access": True, "data_access": "none"}])

    assert normalized[0].has_access is True
    assert normalized[0].data_access == "none"


def test_unknown_data_access_falls_back_to_team():
    assert resolve_data_access(True, "everything") == "team"
    assert resolve_data_access(True, None) == "team"
    assert resolve_data_access(True, " ALL ") == "all"
    assert resolve_data_access(False, "all") == "none"


def test_field_never_editable_unless_visible():
    module_id, hidden_field, visible_field = _ids(3)
    normalized = normalize_module_grants(
        [
            {
                "module_id": module_id,
                "has_access": True,
                "fields": [
                    {"field_id": hidden_field, "is_visible": False, "is_editable": True},
                    {"field_id": visible_field, "is_visible": True, "is_editable": True},
                ],
            }
        ]
    )

    flags = {item.field_id: item for item in normalized[0].fields}
    assert flags[hidden_field].is_visible is False
    assert flags[hidden_field].is_editable is False
    assert flags[visible_field].is_editable is True


def test_malformed_payload_is_treated_as_empty():
    assert normalize_module_grants(None) == []
    assert normalize_module_grants({"module_id": str(uuid.uuid4())}) == []
    assert normalize_module_grants("not-a-list") == []


def test_entries_without_module_id_are_skipped_and_duplicates_collapse():
    module_id, first, second = _ids(3)
    normalized = normalize_module_grants(
        [
            {"permissions": [{"permission_id": first, "granted": True}]},
            {"module_id": "not-a-uuid"},
            {"module_id": module_id, "permissions": [{"permission_id": first, "granted": True}]},
            {"module_id": module_id, "permissions": [{"permission_id": second, "granted": True}]},
        ]
    )

    assert len(normalized) == 1
    assert project_legacy_permission_ids(normalized) == {second}


def test_non_list_permission_and_field_collections_are_ignored():
    (module_id,) = _ids(1)
    normalized = normalize_module_grants([{"module_id": module_id, "permissions": "x", "fields": {"a": 1}}])

    assert normalized[0].permissions == ()
    assert normalized[0].fields == ()
    assert normalized[0].has_access is False


def test_normalize_permission_ids_drops_malformed_values():
    valid = uuid.uuid4()
    assert normalize_permission_ids([str(valid), "nope", None, valid]) == {valid}
    assert normalize_permission_ids(None) == set()
