"""
Tests for the /api/v1/reviews endpoints and review moderation under /api/v1/admin
"""
import pytest

from storefront.core.auth import create_access_token


@pytest.fixture
def product(make_product):
    return make_product(name="Headphones", slug="headphones")


def write_review(client, headers, product, rating=4, comment="Great sound"):
    return client.post(
        "/api/v1/reviews/",
        json={"product_id": product.id, "rating": rating, "comment": comment},
        headers=headers,
    )


class TestReviews:

    def test_create_is_pending_until_approved(self, client, auth_headers, admin_headers, product):
        created = write_review(client, auth_headers, product)
        review_id = created.json()["data"]["id"]

        before = client.get(f"/api/v1/reviews/product/{product.id}").json()
        client.put(f"/api/v1/reviews/{review_id}/status", json={"status": "approved"}, headers=admin_headers)
        after = client.get(f"/api/v1/reviews/product/{product.id}").json()

        assert created.status_code == 201
        assert created.json()["data"]["status"] == "pending"
        assert created.json()["data"]["user"]["name"] == "Jane Doe"
        assert before["total"] == 0
        assert after["total"] == 1

    def test_ratings_update_product(self, client, auth_headers, product, db):
        write_review(client, auth_headers, product, rating=5)

        db.refresh(product)
        assert product.rating_average == 5.0
        assert product.rating_count == 1
        assert product.rating_distribution["5"] == 1

    def test_one_review_per_product(self, client, auth_headers, product):
        write_review(client, auth_headers, product)

        response = write_review(client, auth_headers, product)

        assert response.status_code == 400
        assert response.json()["message"] == "You have already reviewed this product"

    def test_rating_out_of_range(self, client, auth_headers, product):
        response = write_review(client, auth_headers, product, rating=6)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "rating"

    def test_only_author_updates(self, client, auth_headers, other_user, product):
        review_id = write_review(client, auth_headers, product).json()["data"]["id"]
        other_headers = {"Authorization": f"Bearer {create_access_token(other_user)}"}

        forbidden = client.put(f"/api/v1/reviews/{review_id}", json={"rating": 1}, headers=other_headers)
        updated = client.put(f"/api/v1/reviews/{review_id}", json={"rating": 2}, headers=auth_headers)

        assert forbidden.status_code == 403
        assert updated.json()["data"]["rating"] == 2

    def test_helpful_toggle(self, client, auth_headers, other_user, product):
        review_id = write_review(client, auth_headers, product).json()["data"]["id"]
        other_headers = {"Authorization": f"Bearer {create_access_token(other_user)}"}

        first = client.post(f"/api/v1/reviews/{review_id}/helpful", headers=other_headers).json()["data"]
        second = client.post(f"/api/v1/reviews/{review_id}/helpful", headers=other_headers).json()["data"]

        assert first == {"helpful_votes": 1, "voted": True}
        assert second == {"helpful_votes": 0, "voted": False}

    def test_mine(self, client, auth_headers, product):
        write_review(client, auth_headers, product)

        body = client.get("/api/v1/reviews/mine", headers=auth_headers).json()

        assert body["total"] == 1


class TestReportedReviews:

    def test_report_and_delete(self, client, auth_headers, admin_headers, other_user, product, db):
        review_id = write_review(client, auth_headers, product).json()["data"]["id"]
        other_headers = {"Authorization": f"Bearer {create_access_token(other_user)}"}
        client.post(f"/api/v1/reviews/{review_id}/report", json={"reason": "Spam"}, headers=other_headers)

        reported = client.get("/api/v1/admin/reported-reviews", headers=admin_headers).json()
        handled = client.post(
            f"/api/v1/admin/reported-reviews/{review_id}/handle",
            json={"action": "delete"},
            headers=admin_headers,
        )

        assert reported["total"] == 1
        assert reported["data"][0]["report_count"] == 1
        assert reported["data"][0]["reasons"] == ["Spam"]
        assert handled.json()["message"] == "Review deleted"
        assert client.get(f"/api/v1/reviews/{review_id}").status_code == 404
        db.refresh(product)
        assert product.rating_count == 0

    def test_keep_clears_reports(self, client, auth_headers, admin_headers, product):
        review_id = write_review(client, auth_headers, product).json()["data"]["id"]
        client.post(f"/api/v1/reviews/{review_id}/report", json={"reason": "Rude"}, headers=auth_headers)

        handled = client.post(
            f"/api/v1/admin/reported-reviews/{review_id}/handle",
            json={"action": "keep"},
            headers=admin_headers,
        )
        reported = client.get("/api/v1/admin/reported-reviews", headers=admin_headers).json()

        assert handled.json()["message"] == "Review kept"
        assert reported["total"] == 0
