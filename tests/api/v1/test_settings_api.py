from unittest.mock import patch


def test_get_settings_defaults(client, mock_db):
    with patch("tuition.api.v1.endpoints.settings.get_database", return_value=mock_db):
        response = client.get("/api/v1/settings/")

    assert response.status_code == 200
    body = response.json()
    assert body["invoicePrefix"] == "INV"
    assert body["invoiceSeq"] == 1


def test_put_settings_cannot_rewind_counter(client, mock_db, school_settings):
    mock_db.settings.find_one_and_update.return_value = school_settings.to_document()
    edited = school_settings.model_copy(update={"currency": "KES", "invoice_seq": 1})

    with patch("tuition.api.v1.endpoints.settings.get_database", return_value=mock_db):
        response = client.put("/api/v1/settings/", json=edited.model_dump(by_alias=True, mode="json"))

    assert response.status_code == 200
    assert response.json()["invoiceSeq"] == 7
    saved = mock_db.settings.find_one_and_update.call_args.args[1]["$set"]
    assert saved["currency"] == "KES"
    assert "invoiceSeq" not in saved
