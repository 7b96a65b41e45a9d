import uuid

import pytest
from httpx import AsyncClient
from fastapi import status

BASE_URL = "/api/v1/categories"


async def create(client: AsyncClient, headers: dict, name: str, slug: str, parent_id=None, **extra) -> dict:
    body = {"name": name, "slug": slug, **extra}
    if parent_id is not None:
        body["parentId"] = parent_id
    response = await client.post(BASE_URL, json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["data"]


@pytest.fixture
async def hierarchy(client: AsyncClient, admin_headers: dict) -> dict:
    electronics = await create(client, admin_headers, "Electronics", "electronics")
    phones = await create(client, admin_headers, "Phones", "phones", electronics["categoryId"])
    smartphones = await create(client, admin_headers, "Smartphones", "smartphones", phones["categoryId"])
    return {"electronics": electronics, "phones": phones, "smartphones": smartphones}


@pytest.mark.asyncio
class TestCategoryAuth:
    """Mutations are admin-only; reads are public"""

    async def test_create_requires_token(self, client: AsyncClient):
        response = await client.post(BASE_URL, json={"name": "Electronics"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["success"] is False

    async def test_create_rejects_invalid_token(self, client: AsyncClient):
        headers = {"Authorization": "Bearer not-a-jwt"}
        response = await client.post(BASE_URL, json={"name": "Electronics"}, headers=headers)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_customer_cannot_mutate(self, client: AsyncClient, customer_headers: dict):
        response = await client.post(BASE_URL, json={"name": "Electronics"}, headers=customer_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "Admin access required"

        response = await client.request(
            "DELETE", f"{BASE_URL}/bulk", json={"ids": [str(uuid.uuid4())]}, headers=customer_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_listing_is_public(self, client: AsyncClient):
        response = await client.get(BASE_URL)
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["success"] is True
        assert data["data"] == []
        assert data["meta"]["total"] == 0


@pytest.mark.asyncio
class TestCategoryCrud:
    """Create, read, update and delete through the HTTP surface"""

    async def test_create_category(self, client: AsyncClient, admin_headers: dict):
        body = {"name": "Home & Kitchen", "sortOrder": 3, "isFeatured": True, "metaTitle": "Home"}
        response = await client.post(BASE_URL, json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_201_CREATED

        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Category created successfully"
        category = data["data"]
        assert category["slug"] == "home-kitchen"
        assert category["level"] == 0
        assert category["parentId"] is None
        assert category["sortOrder"] == 3
        assert category["isFeatured"] is True
        assert category["isActive"] is True
        assert "deletedCount" not in data

    async def test_create_child_sets_level(self, client: AsyncClient, hierarchy: dict):
        assert hierarchy["phones"]["level"] == 1
        assert hierarchy["smartphones"]["level"] == 2
        assert hierarchy["smartphones"]["parentId"] == hierarchy["phones"]["categoryId"]

    async def test_create_validation_failed(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(BASE_URL, json={"name": ""}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "ValidationFailed"
        assert data["details"]

        response = await client.post(BASE_URL, json={"name": "Bad", "slug": "bad slug!"}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_create_duplicate_slug(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        response = await client.post(BASE_URL, json={"name": "Other", "slug": "Phones"}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "DuplicateSlug"
        assert data["error"] == "Category with this slug already exists"

    async def test_create_with_missing_parent(self, client: AsyncClient, admin_headers: dict):
        body = {"name": "Orphan", "parentId": str(uuid.uuid4())}
        response = await client.post(BASE_URL, json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["code"] == "ParentNotFound"

    async def test_get_by_slug_with_relatives(self, client: AsyncClient, hierarchy: dict):
        response = await client.get(
            f"{BASE_URL}/phones", params={"includeChildren": "true", "includeParent": "true"}
        )
        assert response.status_code == status.HTTP_200_OK
        category = response.json()["data"]
        assert category["categoryId"] == hierarchy["phones"]["categoryId"]
        assert [c["slug"] for c in category["children"]] == ["smartphones"]
        assert category["parent"]["slug"] == "electronics"

    async def test_get_by_id(self, client: AsyncClient, hierarchy: dict):
        category_id = hierarchy["electronics"]["categoryId"]
        response = await client.get(f"{BASE_URL}/{category_id}")
        assert response.status_code == status.HTTP_200_OK
        category = response.json()["data"]
        assert category["slug"] == "electronics"
        assert "children" not in category

        response = await client.get(f"{BASE_URL}/{category_id}", params={"includeParent": "true"})
        assert response.json()["data"]["parent"] is None

    async def test_get_not_found(self, client: AsyncClient):
        response = await client.get(f"{BASE_URL}/does-not-exist")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data == {"success": False, "error": "Category not found", "code": "NotFound"}

    async def test_list_flat_and_tree(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        await create(client, admin_headers, "Fashion", "fashion", sortOrder=2)

        response = await client.get(BASE_URL, params={"parentId": "root"})
        assert [c["slug"] for c in response.json()["data"]] == ["electronics", "fashion"]

        response = await client.get(BASE_URL, params={"limit": 2, "page": 2, "sortBy": "name"})
        data = response.json()
        assert data["meta"] == {"total": 4, "page": 2, "limit": 2, "totalPages": 2}
        assert [c["slug"] for c in data["data"]] == ["phones", "smartphones"]

        response = await client.get(BASE_URL, params={"tree": "true"})
        assert response.status_code == status.HTTP_200_OK
        forest = response.json()["data"]
        assert [node["slug"] for node in forest] == ["electronics", "fashion"]
        phones = forest[0]["children"][0]
        assert phones["slug"] == "phones"
        assert phones["children"][0]["slug"] == "smartphones"
        assert phones["children"][0]["children"] == []

    async def test_list_rejects_bad_parent_filter(self, client: AsyncClient):
        response = await client.get(BASE_URL, params={"parentId": "nope"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ValidationFailed"

    async def test_move_relevels_subtree(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        phones_id = hierarchy["phones"]["categoryId"]
        response = await client.patch(f"{BASE_URL}/{phones_id}", json={"parentId": None}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["level"] == 0

        response = await client.get(f"{BASE_URL}/smartphones")
        assert response.json()["data"]["level"] == 1

    async def test_update_circular_reference(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        electronics_id = hierarchy["electronics"]["categoryId"]
        body = {"parentId": hierarchy["smartphones"]["categoryId"]}
        response = await client.put(f"{BASE_URL}/{electronics_id}", json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "CircularReference"

        body = {"parentId": electronics_id}
        response = await client.put(f"{BASE_URL}/{electronics_id}", json=body, headers=admin_headers)
        assert response.json()["code"] == "SelfParent"

    @pytest.mark.parametrize("body", [{"isActive": None}, {"isFeatured": None}, {"sortOrder": None}])
    async def test_update_rejects_null_flags(self, client: AsyncClient, admin_headers: dict, body: dict):
        electronics = await create(client, admin_headers, "Electronics", "electronics")
        response = await client.patch(
            f"{BASE_URL}/{electronics['categoryId']}", json=body, headers=admin_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ValidationFailed"

        response = await client.get(f"{BASE_URL}/electronics")
        category = response.json()["data"]
        assert category["isActive"] is True
        assert category["isFeatured"] is False
        assert category["sortOrder"] == 0

    async def test_update_unknown_category(self, client: AsyncClient, admin_headers: dict):
        response = await client.patch(f"{BASE_URL}/{uuid.uuid4()}", json={"name": "x"}, headers=admin_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_delete_with_children(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        electronics_id = hierarchy["electronics"]["categoryId"]
        response = await client.delete(f"{BASE_URL}/{electronics_id}", headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "HasChildren"
        assert data["childCount"] == 1

        # blank reassignTo counts as absent
        response = await client.delete(
            f"{BASE_URL}/{electronics_id}", params={"reassignTo": ""}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "HasChildren"
        assert response.json()["childCount"] == 1

        response = await client.delete(
            f"{BASE_URL}/{electronics_id}", params={"reassignTo": "null"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Category deleted successfully"

        response = await client.get(f"{BASE_URL}/phones")
        assert response.json()["data"]["level"] == 0
        assert response.json()["data"]["parentId"] is None

    async def test_cascade_delete(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        electronics_id = hierarchy["electronics"]["categoryId"]
        response = await client.delete(
            f"{BASE_URL}/{electronics_id}", params={"cascade": "true"}, headers=admin_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["deletedCount"] == 3

        response = await client.get(BASE_URL, params={"includeInactive": "true"})
        assert response.json()["meta"]["total"] == 0


@pytest.mark.asyncio
class TestCategoryBulk:
    """PATCH/DELETE on /categories/bulk"""

    async def test_bulk_update_flags(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        ids = [hierarchy["phones"]["categoryId"], hierarchy["smartphones"]["categoryId"]]
        body = {"ids": ids, "data": {"isActive": False}}
        response = await client.patch(f"{BASE_URL}/bulk", json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["updatedCount"] == 2

        response = await client.get(BASE_URL)
        assert [c["slug"] for c in response.json()["data"]] == ["electronics"]

    async def test_bulk_update_requires_data(self, client: AsyncClient, admin_headers: dict):
        body = {"ids": [str(uuid.uuid4())], "data": {}}
        response = await client.patch(f"{BASE_URL}/bulk", json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "ValidationFailed"

        response = await client.patch(f"{BASE_URL}/bulk", json={"ids": []}, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_reorder(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        body = {
            "action": "reorder",
            "items": [
                {"id": hierarchy["electronics"]["categoryId"], "sortOrder": 7},
                {"id": hierarchy["phones"]["categoryId"], "sortOrder": 4},
            ],
        }
        for _ in range(2):
            response = await client.patch(f"{BASE_URL}/bulk", json=body, headers=admin_headers)
            assert response.status_code == status.HTTP_200_OK
            assert response.json()["updatedCount"] == 2

        response = await client.get(f"{BASE_URL}/electronics")
        assert response.json()["data"]["sortOrder"] == 7

    async def test_bulk_delete_orphans(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        body = {"ids": [hierarchy["phones"]["categoryId"]]}
        response = await client.request("DELETE", f"{BASE_URL}/bulk", json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "OrphanWouldResult"
        assert data["orphanedCount"] == 1
        assert "hint" in data

    async def test_bulk_delete(self, client: AsyncClient, admin_headers: dict, hierarchy: dict):
        body = {"ids": [hierarchy["phones"]["categoryId"], hierarchy["smartphones"]["categoryId"]]}
        response = await client.request("DELETE", f"{BASE_URL}/bulk", json=body, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["deletedCount"] == 2

        response = await client.get(BASE_URL)
        assert [c["slug"] for c in response.json()["data"]] == ["electronics"]


@pytest.mark.asyncio
class TestServiceEndpoints:
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "active"

    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get(BASE_URL, headers={"X-Request-Id": "abc123"})
        assert response.headers["X-Request-Id"] == "abc123"
        assert "X-Process-Time" in response.headers
