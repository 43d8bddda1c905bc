"""
Portal and claims tests.
"""

import pytest

from autoquote.services.store import PolicyStore


@pytest.fixture
def claim_payload():
    return {
        "incidentDate": "2025-05-02",
        "incidentLocation": "I-80 near Sacramento",
        "incidentDescription": "Rear-ended at a stop light",
        "claimType": "collision",
        "estimatedAmount": 2400.0,
        "policeReportFiled": True,
        "policeReportNumber": "SAC-2025-1182",
    }


class TestDashboard:

    def test_dashboard_for_bound_policy(self, client, bound_policy):
        response = client.get(f"/api/v1/portal/{bound_policy['policy_number']}/dashboard")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "BOUND"
        assert body["premium"]["total"] == 1500
        assert body["driver"]["isPrimary"] is True
        assert len(body["vehicles"]) == 1
        assert body["document_count"] == 2
        assert body["open_claims_count"] == 0
        assert body["recent_events"][0]["new_status"] == "BOUND"

    def test_quote_not_visible_in_portal(self, client, create_quote):
        quote = create_quote()

        for view in ("dashboard", "policy", "billing", "documents", "claims"):
            response = client.get(f"/api/v1/portal/{quote['quote_number']}/{view}")
            assert response.status_code == 404, view
            assert response.json()["details"]["resource"] == "Policy"

    def test_bound_status_without_payment_is_hidden(self, client, session, create_quote):
        quote = create_quote()
        PolicyStore(session).update(quote["quote_number"], {"status": "BOUND"})

        response = client.get(f"/api/v1/portal/{quote['quote_number']}/dashboard")

        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Policy"


class TestBilling:

    def test_billing_shows_tokenized_payment(self, client, bound_policy):
        response = client.get(f"/api/v1/portal/{bound_policy['policy_number']}/billing")

        body = response.json()
        assert response.status_code == 200
        assert body["total_paid"] == 1500
        assert body["premium"]["monthly"] == 250.0
        assert len(body["payments"]) == 1
        assert body["payments"][0]["last_four_digits"] == "4242"
        assert "4242424242424242" not in response.text


class TestPortalPolicy:

    def test_policy_view(self, client, bound_policy):
        response = client.get(f"/api/v1/portal/{bound_policy['policy_number']}/policy")

        body = response.json()
        assert response.status_code == 200
        assert body["policy_number"] == bound_policy["policy_number"]
        assert body["snapshot"]["meta"]["quoteNumber"] == bound_policy["policy_number"]
        assert len(body["documents"]) == 2

    def test_documents(self, client, bound_policy):
        response = client.get(f"/api/v1/portal/{bound_policy['policy_number']}/documents")

        documents = response.json()
        assert [d["document_type"] for d in documents] == ["DECLARATIONS", "ID_CARD"]
        assert all(d["document_status"] == "READY" for d in documents)
        assert all(d["document_number"].startswith("DOC-") for d in documents)
        assert all(bound_policy["policy_number"] in d["storage_url"] for d in documents)

    def test_single_document(self, client, bound_policy):
        number = bound_policy["policy_number"]
        declarations = bound_policy["documents"][0]

        response = client.get(f"/api/v1/portal/{number}/documents/{declarations['document_number'].lower()}")

        assert response.status_code == 200
        assert response.json() == declarations

    def test_document_of_another_policy_is_not_found(self, client, bound_policy, create_quote, bind_quote):
        other = create_quote()
        other_document = bind_quote(other["quote_number"]).json()["documents"][0]

        response = client.get(
            f"/api/v1/portal/{bound_policy['policy_number']}/documents/{other_document['document_number']}"
        )

        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Document"


class TestClaims:

    def test_file_and_read_claim(self, client, bound_policy, claim_payload):
        number = bound_policy["policy_number"]

        response = client.post(f"/api/v1/portal/{number}/claims", json=claim_payload)

        claim = response.json()
        assert response.status_code == 201
        assert claim["claim_number"].startswith("CLM-")
        assert claim["status"] == "SUBMITTED"
        assert claim["policy_number"] == number

        fetched = client.get(f"/api/v1/portal/{number}/claims/{claim['claim_number']}")
        assert fetched.status_code == 200
        assert fetched.json()["incident_location"] == "I-80 near Sacramento"

        listed = client.get(f"/api/v1/portal/{number}/claims").json()
        assert [c["claim_number"] for c in listed] == [claim["claim_number"]]

        dashboard = client.get(f"/api/v1/portal/{number}/dashboard").json()
        assert dashboard["open_claims_count"] == 1

    def test_claim_on_in_force_policy(self, client, bound_policy, claim_payload):
        number = bound_policy["policy_number"]
        client.post(f"/api/v1/policies/{number}/activate")

        response = client.post(f"/api/v1/portal/{number}/claims", json=claim_payload)

        assert response.status_code == 201

    def test_claim_on_quote_conflicts(self, client, create_quote, claim_payload):
        quote = create_quote()

        response = client.post(f"/api/v1/portal/{quote['quote_number']}/claims", json=claim_payload)

        assert response.status_code == 409
        assert response.json()["details"] == {"current_status": "QUOTED", "attempted": "file claim"}

    def test_unknown_claim(self, client, bound_policy):
        response = client.get(f"/api/v1/portal/{bound_policy['policy_number']}/claims/CLM-MISSING1")

        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Claim"

    def test_claim_requires_description(self, client, bound_policy, claim_payload):
        claim_payload["incidentDescription"] = ""

        response = client.post(f"/api/v1/portal/{bound_policy['policy_number']}/claims", json=claim_payload)

        assert response.status_code == 400


class TestClaimDocuments:

    @pytest.fixture
    def claim(self, client, bound_policy, claim_payload):
        response = client.post(f"/api/v1/portal/{bound_policy['policy_number']}/claims", json=claim_payload)
        return response.json()

    def test_upload_and_list(self, client, claim):
        url = f"/api/v1/portal/{claim['policy_number']}/claims/{claim['claim_number']}/documents"

        response = client.post(url, json={"filename": "bumper.jpg", "mimeType": "image/jpeg", "fileSize": 245000})

        document = response.json()
        assert response.status_code == 201
        assert document["document_number"].startswith("CDOC-")
        assert document["mime_type"] == "image/jpeg"

        listed = client.get(url).json()
        assert [d["document_number"] for d in listed] == [document["document_number"]]

    @pytest.mark.parametrize("metadata,field", [
        ({"filename": "notes.docx", "mimeType": "application/msword", "fileSize": 1000}, "mime_type"),
        ({"filename": "scan.pdf", "mimeType": "application/pdf", "fileSize": 10 * 1024 * 1024 + 1}, "file_size"),
    ])
    def test_rejected_files(self, client, claim, metadata, field):
        url = f"/api/v1/portal/{claim['policy_number']}/claims/{claim['claim_number']}/documents"

        response = client.post(url, json=metadata)

        assert response.status_code == 400
        assert response.json()["details"]["field"] == field
        assert client.get(url).json() == []

    def test_unknown_claim(self, client, bound_policy):
        response = client.post(
            f"/api/v1/portal/{bound_policy['policy_number']}/claims/CLM-MISSING1/documents",
            json={"filename": "a.png", "mimeType": "image/png", "fileSize": 10}
        )

        assert response.status_code == 404
        assert response.json()["details"]["resource"] == "Claim"
