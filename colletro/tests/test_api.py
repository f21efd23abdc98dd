"""
Integration Tests for FastAPI API Endpoints
"""

import pytest
from fastapi import status


# =============================================================================
# Helpers
# =============================================================================

def create_template(client, admin_headers, data) -> dict:
    response = client.post("/api/recommended-collections", json=data, headers=admin_headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def clone_template(client, headers, template_id) -> dict:
    response = client.post(
        f"/api/recommended-collections/{template_id}/add-to-account",
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def check_updates(client, headers, collection_id):
    return client.get(f"/api/collections/{collection_id}/check-updates", headers=headers)


@pytest.fixture
def template(client, admin_headers, sample_template_data) -> dict:
    return create_template(client, admin_headers, sample_template_data)


@pytest.fixture
def clone(client, user_headers, template) -> dict:
    return clone_template(client, user_headers, template["id"])


@pytest.fixture
def community(client, user_headers) -> dict:
    """Community collection shared by the regular user, with two items."""
    own = client.post(
        "/api/collections",
        json={"name": "Studio Ghibli", "category": "Films"},
        headers=user_headers,
    ).json()
    for number, name in ((1, "My Neighbor Totoro"), (2, "Kiki's Delivery Service")):
        client.post(
            f"/api/collections/{own['id']}/items",
            json={"name": name, "number": number},
            headers=user_headers,
        )
    response = client.post(f"/api/collections/{own['id']}/share-to-community", headers=user_headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


@pytest.fixture
def community_clone(client, other_headers, community) -> dict:
    response = client.post(
        f"/api/community-collections/{community['id']}/add-to-account",
        headers=other_headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


# =============================================================================
# Tests
# =============================================================================

class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test health check returns OK."""
        response = client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == "Colletro"


class TestCheckUpdatesAccess:
    """Tests for authentication and ownership on update checks."""

    def test_requires_user(self, client, clone):
        response = check_updates(client, {}, clone["id"])

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unknown_user_is_unauthorized(self, client, clone):
        response = check_updates(client, {"X-User-Id": "nobody"}, clone["id"])

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_collection(self, client, user_headers):
        response = check_updates(client, user_headers, "nonexistent-id-12345")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_other_users_collection_looks_missing(self, client, other_headers, clone):
        response = check_updates(client, other_headers, clone["id"])

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"detail": "Collection not found"}

    def test_unexpected_failure_is_generic_500(self, lenient_client, admin_headers, user_headers,
                                               sample_template_data, monkeypatch):
        template = create_template(lenient_client, admin_headers, sample_template_data)
        collection = clone_template(lenient_client, user_headers, template["id"])

        def explode(*args, **kwargs):
            raise RuntimeError("database on fire")

        monkeypatch.setattr("colletro.api.collections.check_collection", explode)
        response = check_updates(lenient_client, user_headers, collection["id"])

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        }


class TestCheckUpdates:
    """Tests for the update check response."""

    def test_independent_collection(self, client, user_headers):
        created = client.post(
            "/api/collections",
            json={"name": "Loose Change", "tags": ["Coins"]},
            headers=user_headers,
        ).json()

        response = check_updates(client, user_headers, created["id"])

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"hasUpdate": False, "isCustomized": False}

    def test_fresh_clone(self, client, user_headers, template, clone):
        response = check_updates(client, user_headers, clone["id"])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["hasUpdate"] is False
        assert data["isCustomized"] is False
        assert data["lastSyncedAt"] is None
        assert data["recommendedCollection"] == {
            "name": template["name"],
            "description": template["description"],
            "category": template["category"],
            "coverImage": template["coverImage"],
            "coverImageAspectRatio": "2:3",
            "tags": '["Marvel","Vintage"]',
            "updatedAt": template["updatedAt"],
        }

    def test_deleted_source(self, client, admin_headers, user_headers, template, clone):
        deleted = client.delete(f"/api/recommended-collections/{template['id']}", headers=admin_headers)
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

        response = check_updates(client, user_headers, clone["id"])

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"hasUpdate": False, "isCustomized": False}

    def test_template_item_edit_is_an_update(self, client, admin_headers, user_headers, template, clone):
        item_id = template["items"][0]["id"]
        client.patch(
            f"/api/recommended-items/{item_id}",
            json={"image": "https://img.example.com/asm1-cgc.jpg"},
            headers=admin_headers,
        )

        data = check_updates(client, user_headers, clone["id"]).json()

        assert data["hasUpdate"] is True
        # The clone no longer matches the template's current images
        assert data["isCustomized"] is True

    def test_user_rename_is_a_customization(self, client, user_headers, clone):
        client.patch(
            f"/api/collections/{clone['id']}",
            json={"name": "My Spidey Run"},
            headers=user_headers,
        )

        data = check_updates(client, user_headers, clone["id"]).json()

        assert data["hasUpdate"] is False
        assert data["isCustomized"] is True

    def test_user_added_item_is_a_customization(self, client, user_headers, clone):
        client.post(
            f"/api/collections/{clone['id']}/items",
            json={"name": "Annual 1", "isOwned": True},
            headers=user_headers,
        )

        data = check_updates(client, user_headers, clone["id"]).json()

        assert data["isCustomized"] is True

    def test_owning_items_is_not_a_customization(self, client, user_headers, clone):
        item_id = clone["items"][0]["id"]
        client.patch(f"/api/items/{item_id}", json={"isOwned": True}, headers=user_headers)

        data = check_updates(client, user_headers, clone["id"]).json()

        assert data["isCustomized"] is False


class TestSync:
    """Tests for syncing a clone with its template."""

    def test_sync_applies_template_changes(self, client, admin_headers, user_headers, template, clone):
        client.post(
            f"/api/recommended-collections/{template['id']}/items",
            json=[{"name": "Issue 4", "number": 4}],
            headers=admin_headers,
        )
        assert check_updates(client, user_headers, clone["id"]).json()["hasUpdate"] is True

        response = client.post(f"/api/collections/{clone['id']}/sync", headers=user_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [item["name"] for item in data["items"]] == ["Issue 1", "Issue 2", "Issue 3", "Issue 4"]
        assert data["lastSyncedAt"] is not None

        after = check_updates(client, user_headers, clone["id"]).json()
        assert after["hasUpdate"] is False
        assert after["isCustomized"] is False

    def test_sync_keeps_ownership(self, client, admin_headers, user_headers, template, clone):
        item_id = clone["items"][0]["id"]
        client.patch(f"/api/items/{item_id}", json={"isOwned": True}, headers=user_headers)
        client.patch(
            f"/api/recommended-items/{template['items'][0]['id']}",
            json={"image": "https://img.example.com/new.jpg"},
            headers=admin_headers,
        )

        data = client.post(f"/api/collections/{clone['id']}/sync", headers=user_headers).json()

        first = next(item for item in data["items"] if item["id"] == item_id)
        assert first["isOwned"] is True
        assert first["image"] == "https://img.example.com/new.jpg"

    def test_sync_preserving_customizations(self, client, admin_headers, user_headers, template, clone):
        client.patch(
            f"/api/collections/{clone['id']}",
            json={"name": "My Spidey Run"},
            headers=user_headers,
        )
        client.patch(
            f"/api/recommended-collections/{template['id']}",
            json={"description": "The original 1963 run"},
            headers=admin_headers,
        )

        kept = client.post(
            f"/api/collections/{clone['id']}/sync",
            json={"preserveCustomizations": True},
            headers=user_headers,
        ).json()
        assert kept["name"] == "My Spidey Run"

        reverted = client.post(
            f"/api/collections/{clone['id']}/sync",
            json={"preserveCustomizations": False},
            headers=user_headers,
        ).json()
        assert reverted["name"] == template["name"]
        assert reverted["description"] == "The original 1963 run"
        assert reverted["lastSyncedAt"] >= kept["lastSyncedAt"]

    def test_sync_requires_source(self, client, user_headers):
        created = client.post("/api/collections", json={"name": "Loose"}, headers=user_headers).json()

        response = client.post(f"/api/collections/{created['id']}/sync", headers=user_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_sync_after_source_deleted(self, client, admin_headers, user_headers, template, clone):
        client.delete(f"/api/recommended-collections/{template['id']}", headers=admin_headers)

        response = client.post(f"/api/collections/{clone['id']}/sync", headers=user_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"detail": "Source collection not found"}

        # The clone itself is untouched and still points at the old template
        kept = client.get(f"/api/collections/{clone['id']}", headers=user_headers).json()
        assert kept["recommendedCollectionId"] == template["id"]
        assert len(kept["items"]) == 3


class TestRecommendedCollections:
    """Tests for admin-curated templates."""

    def test_create_requires_admin(self, client, user_headers, sample_template_data):
        response = client.post("/api/recommended-collections", json=sample_template_data, headers=user_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_tags_are_stored_as_json(self, template):
        assert template["tags"] == '["Marvel","Vintage"]'
        assert template["tagList"] == ["Marvel", "Vintage"]

    def test_item_delete_advances_updated_at(self, client, admin_headers, template):
        item_id = template["items"][2]["id"]

        response = client.delete(f"/api/recommended-items/{item_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        updated = client.get(f"/api/recommended-collections/{template['id']}").json()
        assert len(updated["items"]) == 2
        assert updated["updatedAt"] > template["updatedAt"]

    def test_list(self, client, template):
        response = client.get("/api/recommended-collections")

        assert response.status_code == status.HTTP_200_OK
        assert [c["id"] for c in response.json()] == [template["id"]]

    def test_delete_requires_admin(self, client, user_headers, template):
        response = client.delete(f"/api/recommended-collections/{template['id']}", headers=user_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_delete_removes_template(self, client, admin_headers, template):
        response = client.delete(f"/api/recommended-collections/{template['id']}", headers=admin_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        missing = client.get(f"/api/recommended-collections/{template['id']}")
        assert missing.status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/api/recommended-collections").json() == []


class TestCommunityCollections:
    """Tests for user-shared templates."""

    def test_share_clone_and_update(self, client, user_headers, other_headers):
        own = client.post(
            "/api/collections",
            json={"name": "Studio Ghibli", "category": "Films"},
            headers=user_headers,
        ).json()
        client.post(
            f"/api/collections/{own['id']}/items",
            json={"name": "Spirited Away", "number": 1},
            headers=user_headers,
        )
        shared = client.post(
            f"/api/collections/{own['id']}/share-to-community",
            headers=user_headers,
        )
        assert shared.status_code == status.HTTP_201_CREATED
        community = shared.json()

        copy = client.post(
            f"/api/community-collections/{community['id']}/add-to-account",
            headers=other_headers,
        ).json()
        assert copy["communityCollectionId"] == community["id"]
        assert check_updates(client, other_headers, copy["id"]).json()["hasUpdate"] is False

        client.post(
            f"/api/community-collections/{community['id']}/items",
            json=[{"name": "Ponyo", "number": 2}],
            headers=user_headers,
        )

        data = check_updates(client, other_headers, copy["id"]).json()
        assert data["hasUpdate"] is True
        assert data["isCustomized"] is True

    def test_only_author_can_edit(self, client, user_headers, other_headers):
        own = client.post("/api/collections", json={"name": "Mine"}, headers=user_headers).json()
        community = client.post(
            f"/api/collections/{own['id']}/share-to-community",
            headers=user_headers,
        ).json()

        response = client.patch(
            f"/api/community-collections/{community['id']}",
            json={"name": "Hijacked"},
            headers=other_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_author_item_edit_is_an_update(self, client, user_headers, other_headers, community, community_clone):
        item_id = community["items"][0]["id"]

        response = client.patch(
            f"/api/community-items/{item_id}",
            json={"image": "https://img.example.com/ghibli/totoro.jpg"},
            headers=user_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["image"] == "https://img.example.com/ghibli/totoro.jpg"
        data = check_updates(client, other_headers, community_clone["id"]).json()
        assert data["hasUpdate"] is True
        assert data["isCustomized"] is True

    def test_author_item_delete_is_an_update(self, client, user_headers, other_headers, community, community_clone):
        item_id = community["items"][1]["id"]

        response = client.delete(f"/api/community-items/{item_id}", headers=user_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        remaining = client.get(f"/api/community-collections/{community['id']}").json()
        assert [item["name"] for item in remaining["items"]] == ["My Neighbor Totoro"]
        data = check_updates(client, other_headers, community_clone["id"]).json()
        assert data["hasUpdate"] is True

    def test_admin_can_edit_community_items(self, client, admin_headers, community):
        item_id = community["items"][0]["id"]

        response = client.patch(
            f"/api/community-items/{item_id}",
            json={"notes": "1988"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK

    def test_only_author_can_edit_items(self, client, other_headers, community):
        item_id = community["items"][0]["id"]

        edit = client.patch(f"/api/community-items/{item_id}", json={"name": "Mine"}, headers=other_headers)
        remove = client.delete(f"/api/community-items/{item_id}", headers=other_headers)

        assert edit.status_code == status.HTTP_403_FORBIDDEN
        assert remove.status_code == status.HTTP_403_FORBIDDEN

    def test_missing_community_item(self, client, user_headers):
        response = client.patch("/api/community-items/nonexistent-id", json={"name": "X"}, headers=user_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_only_author_can_delete(self, client, other_headers, community):
        response = client.delete(f"/api/community-collections/{community['id']}", headers=other_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_deleted_community_source(self, client, user_headers, other_headers, community, community_clone):
        response = client.delete(f"/api/community-collections/{community['id']}", headers=user_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        check = check_updates(client, other_headers, community_clone["id"])
        assert check.json() == {"hasUpdate": False, "isCustomized": False}

        sync = client.post(f"/api/collections/{community_clone['id']}/sync", headers=other_headers)
        assert sync.status_code == status.HTTP_404_NOT_FOUND


class TestItems:
    """Tests for item ownership."""

    def test_cannot_edit_someone_elses_item(self, client, other_headers, clone):
        item_id = clone["items"][0]["id"]

        response = client.patch(f"/api/items/{item_id}", json={"name": "Mine now"}, headers=other_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_item(self, client, user_headers, clone):
        item_id = clone["items"][0]["id"]

        response = client.delete(f"/api/items/{item_id}", headers=user_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        remaining = client.get(f"/api/collections/{clone['id']}", headers=user_headers).json()
        assert item_id not in [item["id"] for item in remaining["items"]]
