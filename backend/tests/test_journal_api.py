ENTRY = {
    "date": "2024-01-02T08:00:00",
    "title": "Pre-market plan",
    "content": "Watching AAPL for a breakout above yesterday's high.",
    "sentiment": "bullish",
    "tags": ["plan"],
}


class TestJournal:
    def test_create_with_related_trades(self, client, auth_headers, create_trade):
        first = create_trade(entry_date="2024-01-02T10:00:00")
        second = create_trade(entry_date="2024-01-02T11:00:00")
        r = client.post("/api/journal", json={**ENTRY, "related_trade_ids": [second["id"], first["id"]]}, headers=auth_headers)
        assert r.status_code == 201
        body = r.json()
        assert body["title"] == "Pre-market plan"
        assert body["related_trade_ids"] == [first["id"], second["id"]]

    def test_foreign_trade_refused(self, client, create_trade, other_headers):
        trade = create_trade()
        r = client.post("/api/journal", json={**ENTRY, "related_trade_ids": [trade["id"]]}, headers=other_headers)
        assert r.status_code == 403

    def test_blank_title(self, client, auth_headers):
        r = client.post("/api/journal", json={**ENTRY, "title": " "}, headers=auth_headers)
        assert r.status_code == 422

    def test_unknown_sentiment(self, client, auth_headers):
        r = client.post("/api/journal", json={**ENTRY, "sentiment": "euphoric"}, headers=auth_headers)
        assert r.status_code == 422

    def test_search_filter_and_sort(self, client, auth_headers):
        client.post("/api/journal", json=ENTRY, headers=auth_headers)
        client.post("/api/journal", json={
            "date": "2024-01-05T08:00:00", "title": "Review", "lessons": "Cut losers faster", "sentiment": "bearish",
        }, headers=auth_headers)

        def titles(query=""):
            return [e["title"] for e in client.get(f"/api/journal{query}", headers=auth_headers).json()]

        assert titles() == ["Review", "Pre-market plan"]
        assert titles("?sort=oldest") == ["Pre-market plan", "Review"]
        assert titles("?q=losers") == ["Review"]
        assert titles("?q=BREAKOUT") == ["Pre-market plan"]
        assert titles("?sentiment=bullish") == ["Pre-market plan"]

    def test_update(self, client, auth_headers, create_trade):
        trade = create_trade()
        entry = client.post("/api/journal", json=ENTRY, headers=auth_headers).json()
        r = client.put(f"/api/journal/{entry['id']}", json={
            "title": "Plan (revised)", "related_trade_ids": [trade["id"]], "sentiment": None,
        }, headers=auth_headers)
        assert r.status_code == 200
        body = r.json()
        assert body["title"] == "Plan (revised)"
        assert body["related_trade_ids"] == [trade["id"]]
        assert body["sentiment"] is None
        assert body["content"] == ENTRY["content"]

    def test_deleting_trade_unlinks_it(self, client, auth_headers, create_trade):
        trade = create_trade()
        entry = client.post("/api/journal", json={**ENTRY, "related_trade_ids": [trade["id"]]}, headers=auth_headers).json()
        client.delete(f"/api/trades/{trade['id']}", headers=auth_headers)
        got = client.get(f"/api/journal/{entry['id']}", headers=auth_headers).json()
        assert got["related_trade_ids"] == []

    def test_delete_and_scope(self, client, auth_headers, other_headers):
        entry = client.post("/api/journal", json=ENTRY, headers=auth_headers).json()
        assert client.get(f"/api/journal/{entry['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/journal/{entry['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/api/journal/{entry['id']}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/journal/{entry['id']}", headers=auth_headers).status_code == 404
