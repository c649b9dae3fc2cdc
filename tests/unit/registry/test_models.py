import dataclasses

import pytest

from projax.registry import (
    COLLECTION_KEYS,
    SCHEMA_VERSION,
    UNSET,
    Document,
    Project,
    Setting,
    record_to_dict,
)


class TestRecords:
    def test_records_are_frozen(self) -> None:
        project = Project(id=1, name="web", path="/web", created_at=0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            project.name = "other"  # pyright: ignore[reportAttributeAccessIssue]

    def test_record_to_dict_converts_tuples_to_lists(self) -> None:
        project = Project(id=1, name="web", path="/web", created_at=0, tags=("a",))

        assert record_to_dict(project)["tags"] == ["a"]

    def test_unset_repr(self) -> None:
        assert repr(UNSET) == "UNSET"


class TestDocument:
    def test_to_dict_has_every_collection_in_order(self) -> None:
        data = Document().to_dict()

        assert list(data) == ["schema_version", *COLLECTION_KEYS]
        assert data["schema_version"] == SCHEMA_VERSION

    def test_extra_keys_never_shadow_collections(self) -> None:
        document = Document(
            settings=[Setting(key="k", value="v", updated_at=1)],
            extra={"settings": "stale", "layout": [1, 2]},
        )

        data = document.to_dict()

        assert data["settings"] == [{"key": "k", "value": "v", "updated_at": 1}]
        assert data["layout"] == [1, 2]
