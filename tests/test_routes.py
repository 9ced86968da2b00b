from datetime import UTC, datetime

from weeklies.weekly import WeeklyPost, week_start_of

from conftest import make_tokens


def _cookie(**tokens):
    return {"Cookie": "; ".join(f"{k.replace('_', '-')}={v}" for k, v in tokens.items())}


def _set_cookies(resp):
    return resp.headers.getlist("Set-Cookie")


def test_guest_index_redirects_to_guest_user(client):
    r = client.get("/")
    assert r.status_code == 301
    assert r.headers["Location"].endswith("/weekly/mw")


def test_authenticated_index_redirects_to_own_weeklies(client, fake_auth):
    fake_auth.add_user("good", "mw")
    r = client.get("/", headers=_cookie(access_token="good"))
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/weekly/mw")
    assert _set_cookies(r) == []


def test_index_refresh_reissues_cookies(client, fake_auth):
    fake_auth.refreshable["r1"] = make_tokens("fresh", "r2", ttl=600)
    fake_auth.add_user("fresh", "bob")
    r = client.get("/", headers=_cookie(access_token="stale", refresh_token="r1"))
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/weekly/bob")
    cookies = _set_cookies(r)
    assert any(c.startswith("access-token=fresh; Max-Age=") for c in cookies)
    assert any(c.startswith("refresh-token=r2; Max-Age=") for c in cookies)


def test_index_failed_refresh_is_treated_as_guest(client):
    r = client.get("/", headers=_cookie(refresh_token="revoked"))
    assert r.status_code == 301
    assert r.headers["Location"].endswith("/weekly/mw")


def test_index_without_guest_index_is_500(app, client):
    app.config["GUEST_INDEX"] = None
    r = client.get("/")
    assert r.status_code == 500
    assert r.mimetype == "text/plain"


def test_login_redirects_to_provider(client, fake_auth):
    r = client.get("/login")
    assert r.status_code == 301
    assert r.headers["Location"] == fake_auth.initial_url()


def test_openid_redirect_sets_cookies(client, fake_auth):
    fake_auth.codes["c0de"] = make_tokens("aaa", "bbb", ttl=3600)
    fake_auth.add_user("aaa", "mw")
    r = client.get("/openid-redirect?code=c0de")
    assert r.status_code == 301
    assert r.headers["Location"].endswith("/")
    cookies = _set_cookies(r)
    assert cookies[0].startswith("access-token=aaa; Max-Age=")
    assert int(cookies[0].rsplit("=", 1)[1]) in (3599, 3600)
    assert cookies[1].startswith("refresh-token=bbb; Max-Age=")


def test_openid_redirect_error_param(client):
    r = client.get("/openid-redirect?error=access_denied&error_description=User%20said%20no")
    assert r.status_code == 500
    assert r.get_data(as_text=True) == "access_denied: User said no."


def test_openid_redirect_without_code_or_error(client):
    r = client.get("/openid-redirect")
    assert r.status_code == 500
    assert r.get_data(as_text=True) == "No error or code in auth response"


def test_openid_redirect_relays_upstream_http_error(client):
    r = client.get("/openid-redirect?code=bogus")
    assert r.status_code == 400
    assert r.mimetype == "text/plain"
    assert r.get_data(as_text=True) == "invalid_grant"


def test_weekly_listing(client, data_source):
    this_week = week_start_of(datetime.now(UTC))
    data_source.update_weekly("mw", WeeklyPost(author="mw", raw_content="**shipped** it", week_begin=this_week))
    r = client.get("/weekly/mw")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "<strong>shipped</strong>" in html
    assert html.count('class="Weekly') == 52
    assert "X-Request-Id" in r.headers


def test_weekly_listing_unknown_user(client):
    assert client.get("/weekly/nobody").status_code == 404


def test_single_weekly(client, data_source):
    data_source.update_weekly("mw", WeeklyPost(author="mw", raw_content="hello", week_begin=datetime(2024, 1, 8, tzinfo=UTC)))
    r = client.get("/weekly/mw/2024-01-08")
    assert r.status_code == 200
    assert "2024 week 2" in r.get_data(as_text=True)
    assert client.get("/weekly/mw/2024-01-15").status_code == 404
    assert client.get("/weekly/mw/2024-01-09").status_code == 404


def test_single_weekly_bad_date(client):
    r = client.get("/weekly/mw/yesterday")
    assert r.status_code == 400


def test_edit_form_requires_owner(client, fake_auth):
    fake_auth.add_user("bob-token", "bob")
    assert client.get("/edit/alice/2024-01-08").status_code == 401
    assert client.get("/edit/alice/2024-01-08", headers=_cookie(access_token="bob-token")).status_code == 401


def test_edit_form_for_owner(client, fake_auth):
    fake_auth.add_user("alice-token", "alice")
    r = client.get("/edit/alice/2024-01-08", headers=_cookie(access_token="alice-token"))
    assert r.status_code == 200
    assert "<textarea" in r.get_data(as_text=True)
    assert client.get("/edit/alice/2024-01-09", headers=_cookie(access_token="alice-token")).status_code == 404


def test_post_edit_by_other_user_is_401(client, fake_auth, data_source):
    fake_auth.add_user("bob-token", "bob")
    r = client.post("/edit/alice/2024-01-08", data={"content": "hijack"}, headers=_cookie(access_token="bob-token"))
    assert r.status_code == 401
    assert data_source.get_user_id("alice") is None


def test_post_edit_saves_markdown(client, fake_auth, data_source):
    fake_auth.add_user("alice-token", "alice")
    r = client.post("/edit/alice/2024-01-08", data={"content": "# Week"}, headers=_cookie(access_token="alice-token"))
    assert r.status_code == 302
    posts = data_source.get_weeklies("alice", datetime(2024, 1, 8, tzinfo=UTC), datetime(2024, 1, 9, tzinfo=UTC))
    assert [p.raw_content for p in posts] == ["# Week"]
    assert posts[0].language == "en"

    r = client.get("/edit/alice/2024-01-08", headers=_cookie(access_token="alice-token"))
    assert "# Week" in r.get_data(as_text=True)


def test_post_edit_not_monday(client, fake_auth):
    fake_auth.add_user("alice-token", "alice")
    r = client.post("/edit/alice/2024-01-10", data={"content": "x"}, headers=_cookie(access_token="alice-token"))
    assert r.status_code == 404


def test_post_edit_bad_date(client):
    assert client.post("/edit/alice/2024-13-40", data={"content": "x"}).status_code == 400


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.get_json() == {"status": "ok"}


def test_weekly_page_does_not_serve_stored_scripts(client, data_source):
    data_source.update_weekly(
        "mw",
        WeeklyPost(author="mw", raw_content="hi <script>alert(document.cookie)</script>", week_begin=datetime(2024, 1, 8, tzinfo=UTC)),
    )
    html = client.get("/weekly/mw/2024-01-08").get_data(as_text=True)
    assert "alert(document.cookie)" not in html
    assert "<p>hi" in html
