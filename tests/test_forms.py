"""
Tests for form endpoints.

Tests cover:
- Listing (own forms vs. admin)
- Creation and field validation
- Ownership checks
- Publish / close
- Public lookup by slug
- Delete cascade
"""


class TestListForms:
    def test_lists_own_forms(self, client, forms, as_user, make_form):
        forms.list.return_value = ([make_form()], 1)

        response = client.get("/api/v1/forms")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["pagination"] == {"next": None, "prev": None}
        assert data["data"][0]["slug"] == "customer-feedback-a1b2c3"
        forms.list.assert_called_once_with(owner_id=as_user["id"], status=None, skip=0, limit=25)

    def test_admin_lists_all(self, client, forms, as_admin):
        forms.list.return_value = ([], 0)

        client.get("/api/v1/forms?status=published")

        forms.list.assert_called_once_with(owner_id=None, status="published", skip=0, limit=25)

    def test_invalid_status_filter(self, client, forms, as_user):
        response = client.get("/api/v1/forms?status=archived")

        assert response.status_code == 422

    def test_requires_auth(self, client, users, forms):
        assert client.get("/api/v1/forms").status_code == 401


class TestCreateForm:
    def test_create_form(self, client, forms, as_user, make_form, form_fields):
        forms.create.return_value = make_form()

        response = client.post(
            "/api/v1/forms",
            json={"title": "Customer feedback", "fields": form_fields},
        )

        assert response.status_code == 201
        assert response.json()["data"]["status"] == "draft"
        kwargs = forms.create.call_args.kwargs
        assert kwargs["owner_id"] == as_user["id"]
        assert [f["id"] for f in kwargs["fields"]] == ["name", "email", "color", "score"]
        assert kwargs["fields"][0]["type"] == "text"

    def test_choice_field_needs_options(self, client, forms, as_user):
        response = client.post(
            "/api/v1/forms",
            json={"title": "Poll", "fields": [{"id": "pick", "type": "select", "label": "Pick one"}]},
        )

        assert response.status_code == 422
        forms.create.assert_not_called()

    def test_duplicate_field_ids(self, client, forms, as_user):
        field = {"id": "q1", "type": "text", "label": "Question"}

        response = client.post("/api/v1/forms", json={"title": "Quiz", "fields": [field, field]})

        assert response.status_code == 422
        assert "duplicate field id" in str(response.json()["details"])

    def test_min_greater_than_max(self, client, forms, as_user):
        field = {"id": "age", "type": "number", "label": "Age", "min_value": 10, "max_value": 1}

        response = client.post("/api/v1/forms", json={"title": "Survey", "fields": [field]})

        assert response.status_code == 422


class TestOwnership:
    def test_owner_can_read(self, client, forms, as_user, make_form):
        forms.get.return_value = make_form()

        response = client.get(f"/api/v1/forms/{make_form()['id']}")

        assert response.status_code == 200

    def test_other_user_forbidden(self, client, forms, as_user, make_form):
        forms.get.return_value = make_form(user_id="6531f0a1b2c3d4e5f6a7b8cb")

        response = client.get(f"/api/v1/forms/{make_form()['id']}")

        assert response.status_code == 403

    def test_admin_can_read_any(self, client, forms, as_admin, make_form):
        forms.get.return_value = make_form(user_id="6531f0a1b2c3d4e5f6a7b8cb")

        response = client.get(f"/api/v1/forms/{make_form()['id']}")

        assert response.status_code == 200

    def test_missing_form(self, client, forms, as_user):
        forms.get.return_value = None

        response = client.get("/api/v1/forms/6531f0a1b2c3d4e5f6a7b8ff")

        assert response.status_code == 404
        assert response.json()["error"] == "Form not found with id of 6531f0a1b2c3d4e5f6a7b8ff"


class TestUpdateForm:
    def test_update_title(self, client, forms, as_user, make_form):
        form = make_form()
        forms.get.return_value = form
        forms.update.return_value = make_form(title="New title")

        response = client.put(f"/api/v1/forms/{form['id']}", json={"title": "New title"})

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "New title"
        forms.update.assert_called_once_with(form["id"], {"title": "New title"})

    def test_empty_update(self, client, forms, as_user, make_form):
        forms.get.return_value = make_form()

        response = client.put(f"/api/v1/forms/{make_form()['id']}", json={})

        assert response.status_code == 400


class TestPublishing:
    def test_publish(self, client, forms, as_user, make_form):
        form = make_form()
        forms.get.return_value = form
        forms.set_status.return_value = make_form(status="published", published_at=form["created_at"])

        response = client.post(f"/api/v1/forms/{form['id']}/publish")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "published"
        forms.set_status.assert_called_once_with(form["id"], "published")

    def test_publish_without_fields(self, client, forms, as_user, make_form):
        forms.get.return_value = make_form(fields=[])

        response = client.post(f"/api/v1/forms/{make_form()['id']}/publish")

        assert response.status_code == 400
        forms.set_status.assert_not_called()

    def test_close(self, client, forms, as_user, make_form):
        forms.get.return_value = make_form(status="published")
        forms.set_status.return_value = make_form(status="closed")

        response = client.post(f"/api/v1/forms/{make_form()['id']}/close")

        assert response.json()["data"]["status"] == "closed"


class TestPublicForm:
    def test_published_form_by_slug(self, client, forms, users, make_form):
        forms.get_by_slug.return_value = make_form(status="published")

        response = client.get("/api/v1/forms/public/customer-feedback-a1b2c3")

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Customer feedback"

    def test_draft_form_hidden(self, client, forms, users, make_form):
        forms.get_by_slug.return_value = make_form(status="draft")

        response = client.get("/api/v1/forms/public/customer-feedback-a1b2c3")

        assert response.status_code == 404


class TestDeleteForm:
    def test_delete_cascades_to_responses(self, client, forms, responses, as_user, make_form):
        form = make_form()
        forms.get.return_value = form
        responses.delete_for_forms.return_value = 3

        response = client.delete(f"/api/v1/forms/{form['id']}")

        assert response.status_code == 200
        assert response.json()["message"] == "Form deleted with 3 response(s)"
        responses.delete_for_forms.assert_called_once_with([form["id"]])
        forms.delete.assert_called_once_with(form["id"])
