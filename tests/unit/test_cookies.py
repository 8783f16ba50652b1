"""Unit tests for the per-host CookieJar."""

from __future__ import annotations

import threading

import httpx

from casdoor_client.clock import fixed_clock
from casdoor_client.cookies import CookieJar, parse_set_cookie
from casdoor_client.endpoints import EndpointRequest


fake_clock = fixed_clock(1_672_531_200.0)  # 2023-01-01T00:00:00Z


def test_round_trip_same_host_only() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc; Path=/"])

    same = jar.apply_to(EndpointRequest(method="GET", url="https://x.test/api/login"))
    other = jar.apply_to(EndpointRequest(method="GET", url="https://y.test/api/login"))

    assert same.headers["Cookie"] == "sid=abc"
    assert "Cookie" not in other.headers


def test_last_write_wins() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=one"])
    jar.record("x.test", ["sid=two", "lang=en"])
    assert jar.header_for("x.test") == "sid=two; lang=en"
    assert len(jar) == 2


def test_apply_to_replaces_existing_cookie_header() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc"])
    request = EndpointRequest(method="GET", url="https://x.test/", headers={"cookie": "stale=1"})
    applied = jar.apply_to(request)
    assert applied.headers == {"Cookie": "sid=abc"}


def test_max_age_zero_deletes() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc"])
    jar.record("x.test", ["sid=; Max-Age=0"])
    assert jar.header_for("x.test") is None


def test_expired_date_deletes_but_future_date_keeps() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["a=1", "b=2"])
    jar.record("x.test", ["a=; Expires=Thu, 01 Jan 1970 00:00:00 GMT"])
    jar.record("x.test", ["b=3; Expires=Fri, 01 Jan 2100 00:00:00 GMT"])
    assert jar.header_for("x.test") == "b=3"


def test_malformed_header_is_skipped() -> None:
    assert parse_set_cookie("\x00;;=") == []
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["\x00;;=", "sid=ok"])
    assert jar.header_for("x.test") == "sid=ok"


def test_record_from_response_uses_request_host() -> None:
    request = httpx.Request("POST", "https://id.example/api/signup")
    response = httpx.Response(
        200,
        headers=[("set-cookie", "casdoor_session_id=s1; Path=/"), ("set-cookie", "x=y")],
        request=request,
    )
    jar = CookieJar(clock=fake_clock)
    jar.record_from_response(response)
    assert jar.header_for("id.example") == "casdoor_session_id=s1; x=y"


def test_clear() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["a=1"])
    jar.record("y.test", ["b=1"])
    jar.clear("x.test")
    assert jar.header_for("x.test") is None
    assert len(jar) == 1
    jar.clear()
    assert len(jar) == 0


def test_concurrent_recording_is_consistent() -> None:
    jar = CookieJar(clock=fake_clock)

    def _writer(idx: int) -> None:
        for n in range(50):
            jar.record("x.test", [f"c{idx}={n}"])

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(jar) == 8
    assert all(c.value == "49" for c in jar.cookies_for("x.test"))


def test_partitioned_flag_keeps_cookie() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc; Path=/; Secure; Partitioned"])
    assert jar.header_for("x.test") == "sid=abc"
    (cookie,) = jar.cookies_for("x.test")
    assert cookie.attributes == {"path": "/", "secure": "", "partitioned": ""}


def test_unknown_attribute_is_not_replayed_as_cookie() -> None:
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc; Path=/; Priority=High; SameSite=Lax"])
    assert jar.header_for("x.test") == "sid=abc"


def test_value_may_contain_equals_sign() -> None:
    (cookie,) = parse_set_cookie("token=a=b==; HttpOnly")
    assert cookie.name == "token"
    assert cookie.value == "a=b=="


def test_naive_expires_date_is_read_as_utc() -> None:
    # one hour before fake_clock, "-0000" zone
    jar = CookieJar(clock=fake_clock)
    jar.record("x.test", ["sid=abc"])
    jar.record("x.test", ["sid=; Expires=Sat, 31 Dec 2022 23:00:00 -0000"])
    assert jar.header_for("x.test") is None

    # one hour after fake_clock
    jar.record("x.test", ["sid=new; Expires=Sun, 01 Jan 2023 01:00:00 -0000"])
    assert jar.header_for("x.test") == "sid=new"
