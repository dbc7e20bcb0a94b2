import unittest
from unittest import mock

import requests

from feed2blog.models.results import Err, Ok
from feed2blog.services.blogger_client import POSTS_URL, TOKEN_URL, BloggerClient


def _resp(payload=None, status: int = 200):
    r = mock.Mock()
    r.status_code = status
    r.ok = status < 400
    r.text = str(payload)
    r.json.return_value = payload
    if status >= 400:
        r.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return r


def _client(session) -> BloggerClient:
    return BloggerClient("cid", "secret", "refresh", "blog-1", session=session)


class BloggerClientTests(unittest.TestCase):
    def test_refreshes_token_then_inserts_post(self) -> None:
        session = mock.Mock()
        session.post.side_effect = [
            _resp({"access_token": "tok-1", "expires_in": 3600}),
            _resp({"id": "99", "url": "https://blog.example.com/p/99"}),
        ]

        res = _client(session).create_post("Title", "<p>Body</p>", ["a", "b"])

        self.assertEqual(res.value.url, "https://blog.example.com/p/99")
        self.assertEqual(res.value.ref, "https://blog.example.com/p/99")
        token_call, insert_call = session.post.call_args_list
        self.assertEqual(token_call.args[0], TOKEN_URL)
        self.assertEqual(token_call.kwargs["data"]["grant_type"], "refresh_token")
        self.assertEqual(token_call.kwargs["data"]["refresh_token"], "refresh")
        self.assertEqual(insert_call.args[0], POSTS_URL.format(blog_id="blog-1"))
        self.assertEqual(insert_call.kwargs["headers"]["Authorization"], "Bearer tok-1")
        self.assertEqual(insert_call.kwargs["json"], {"title": "Title", "content": "<p>Body</p>", "labels": ["a", "b"]})

    def test_token_is_reused_until_expiry(self) -> None:
        session = mock.Mock()
        session.post.side_effect = [
            _resp({"access_token": "tok-1", "expires_in": 3600}),
            _resp({"id": "1"}),
            _resp({"id": "2"}),
        ]
        client = _client(session)
        client.create_post("A", "<p>a</p>")
        res = client.create_post("B", "<p>b</p>")

        self.assertEqual(session.post.call_count, 3)
        self.assertEqual(res.value.ref, "2")

    def test_empty_labels_are_omitted(self) -> None:
        session = mock.Mock()
        session.post.side_effect = [_resp({"access_token": "t"}), _resp({"id": "1"})]
        _client(session).create_post("A", "<p>a</p>", [])
        self.assertNotIn("labels", session.post.call_args.kwargs["json"])

    def test_insert_error_is_err(self) -> None:
        session = mock.Mock()
        session.post.side_effect = [_resp({"access_token": "t"}), _resp({"error": "forbidden"}, status=403)]
        res = _client(session).create_post("A", "<p>a</p>")
        self.assertIsInstance(res, Err)
        self.assertIn("403", res.reason)

    def test_token_error_is_err(self) -> None:
        session = mock.Mock()
        session.post.return_value = _resp({"error": "invalid_grant"}, status=400)
        res = _client(session).create_post("A", "<p>a</p>")
        self.assertIsInstance(res, Err)
        self.assertEqual(session.post.call_count, 1)

    def test_network_error_is_err(self) -> None:
        session = mock.Mock()
        session.post.side_effect = requests.ConnectionError("no route")
        self.assertIsInstance(_client(session).create_post("A", "<p>a</p>"), Err)

    def test_ok_type(self) -> None:
        session = mock.Mock()
        session.post.side_effect = [_resp({"access_token": "t"}), _resp({"id": "1"})]
        self.assertIsInstance(_client(session).create_post("A", "<p>a</p>"), Ok)

    def test_unexpected_body_after_insert_is_still_ok(self) -> None:
        for body in (["not", "a", "dict"], "created", None):
            with self.subTest(body=body):
                session = mock.Mock()
                session.post.side_effect = [_resp({"access_token": "t"}), _resp(body)]
                res = _client(session).create_post("A", "<p>a</p>")
                self.assertIsInstance(res, Ok)
                self.assertEqual(res.value.ref, "(no url returned)")

    def test_unparseable_body_after_insert_is_still_ok(self) -> None:
        insert = _resp()
        insert.json.side_effect = ValueError("Expecting value")
        session = mock.Mock()
        session.post.side_effect = [_resp({"access_token": "t"}), insert]
        res = _client(session).create_post("A", "<p>a</p>")
        self.assertIsInstance(res, Ok)
        self.assertIsNone(res.value.url)


if __name__ == "__main__":
    unittest.main()
