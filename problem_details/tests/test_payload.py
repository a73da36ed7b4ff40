import datetime
import enum
import threading
import unittest

from problem_assertions import CodedRuntimeError, InvalidClientRequest

from problem_details.core.errors import ProblemDetailsError
from problem_details.payload import (
    DebugConfig,
    ProblemPayloadBuilder,
    describe_exception,
    previous_errors,
    reason_phrase,
)
from problem_details.render.sanitize import DROP, sanitize


class Color(enum.Enum):
    RED = "red"


class TestBuild(unittest.TestCase):
    def setUp(self):
        self.builder = ProblemPayloadBuilder()

    def test_every_status_gets_its_default_type(self):
        for status in range(100, 600):
            with self.subTest(status=status):
                payload = self.builder.build(status, "detail")
                self.assertEqual(payload["status"], status)
                self.assertEqual(payload["type"], f"https://httpstatus.es/{status}")

    def test_types_map_wins_over_template(self):
        builder = ProblemPayloadBuilder(types_map={404: "https://example.com/not-found"})
        self.assertEqual(builder.build(404, "x")["type"], "https://example.com/not-found")
        self.assertEqual(builder.build(410, "x")["type"], "https://httpstatus.es/410")

    def test_canonical_members_come_first(self):
        payload = self.builder.build(409, "Conflict detected", additional={"resource": "user"})
        self.assertEqual(list(payload), ["type", "title", "status", "detail", "resource"])
        self.assertEqual(payload["title"], "Conflict")

    def test_extensions_never_clobber_canonical_members(self):
        payload = self.builder.build(
            400, "Bad input", "Title", "about:blank",
            {"status": 200, "title": "Nope", "type": "x", "detail": "y", "instance": "/orders/1"},
        )
        self.assertEqual(payload["status"], 400)
        self.assertEqual(payload["title"], "Title")
        self.assertEqual(payload["type"], "about:blank")
        self.assertEqual(payload["detail"], "Bad input")
        self.assertEqual(payload["instance"], "/orders/1")

    def test_unregistered_status_title(self):
        self.assertEqual(reason_phrase(599), "Unknown Error")
        self.assertEqual(self.builder.build(599, "x")["title"], "Unknown Error")

    def test_invalid_status_falls_back_to_500(self):
        for status in (0, 99, 600, "404", True, None):
            with self.subTest(status=status):
                payload = self.builder.build(status, "secret detail")
                self.assertEqual(payload["status"], 500)
                self.assertEqual(payload["detail"], "An unexpected error occurred")

    def test_invalid_additional_is_ignored(self):
        payload = self.builder.build(400, "x", additional=["not", "a", "mapping"])
        self.assertEqual(list(payload), ["type", "title", "status", "detail"])

    def test_resources_are_removed_at_any_depth(self):
        lock = threading.Lock()
        with open(__file__, "rb") as fh:
            payload = self.builder.build(500, "x", additional={
                "args": {"resource": fh, "kept": 1, "deeper": {"callback": lambda: None, "lock": lock}},
                "items": [fh, "a", (i for i in range(3))],
            })
        self.assertEqual(payload["args"], {"kept": 1, "deeper": {}})
        self.assertEqual(payload["items"], ["a"])

    def test_rich_values_are_converted(self):
        payload = self.builder.build(400, "x", additional={
            "when": datetime.date(2024, 1, 31),
            "color": Color.RED,
            "ratio": float("nan"),
            "raw": b"\xc3\x28",
            "obj": object(),
        })
        self.assertEqual(payload["when"], "2024-01-31")
        self.assertEqual(payload["color"], "red")
        self.assertIsNone(payload["ratio"])
        self.assertEqual(payload["raw"], "\ufffd(")
        self.assertNotIn("obj", payload)

    def test_self_referencing_additional_does_not_recurse_forever(self):
        loop = {}
        loop["self"] = loop
        payload = self.builder.build(400, "x", additional={"loop": loop})
        self.assertIn("loop", payload)


class TestBuildFromThrowable(unittest.TestCase):
    def test_problem_details_error(self):
        error = ProblemDetailsError.create(
            403, "Your balance is 30", "You do not have enough credit.",
            "https://example.com/probs/out-of-credit", {"balance": 30, "accounts": ["/account/12345"]},
        )
        payload = ProblemPayloadBuilder().build_from_throwable(error)
        self.assertEqual(payload, {
            "type": "https://example.com/probs/out-of-credit",
            "title": "You do not have enough credit.",
            "status": 403,
            "detail": "Your balance is 30",
            "balance": 30,
            "accounts": ["/account/12345"],
        })

    def test_structured_error_defaults(self):
        payload = ProblemPayloadBuilder().build_from_throwable(ProblemDetailsError(status=409, detail="Version mismatch"))
        self.assertEqual(payload["title"], "Conflict")
        self.assertEqual(payload["type"], "https://httpstatus.es/409")

    def test_structured_error_with_invalid_status(self):
        error = InvalidClientRequest({})
        error.status = 42
        self.assertEqual(ProblemPayloadBuilder().build_from_throwable(error)["status"], 500)

    def test_generic_error_is_masked(self):
        payload = ProblemPayloadBuilder().build_from_throwable(CodedRuntimeError("Your SQL or password here", 404))
        self.assertEqual(payload["status"], 500)
        self.assertEqual(payload["title"], "Internal Server Error")
        self.assertEqual(payload["detail"], "An unexpected error occurred")
        self.assertNotIn("exception", payload)

    def test_debug_mode_exposes_message(self):
        builder = ProblemPayloadBuilder(DebugConfig(include_throwable_details=True))
        payload = builder.build_from_throwable(ValueError("bad value"))
        self.assertEqual(payload["detail"], "bad value")
        self.assertEqual(payload["status"], 500)
        self.assertEqual(payload["exception"]["class"], "ValueError")

    def test_broken_str_falls_back(self):
        class Unprintable(Exception):
            def __str__(self):
                raise RuntimeError("no")

        builder = ProblemPayloadBuilder(DebugConfig(expose_fragile_message=True))
        payload = builder.build_from_throwable(Unprintable())
        self.assertEqual(payload["status"], 500)
        self.assertEqual(payload["detail"], "An unexpected error occurred")

    def test_stack_is_ordered_from_earliest_cause(self):
        try:
            try:
                try:
                    raise KeyError("a")
                except KeyError as a:
                    raise ValueError("b") from a
            except ValueError:
                raise RuntimeError("c")
        except RuntimeError as c:
            error = c

        self.assertEqual([type(e).__name__ for e in previous_errors(error)], ["ValueError", "KeyError"])
        builder = ProblemPayloadBuilder(DebugConfig(include_throwable_details=True))
        stack = builder.build_from_throwable(error)["exception"]["stack"]
        self.assertEqual([s["class"] for s in stack], ["KeyError", "ValueError"])
        self.assertNotIn("stack", stack[0])

    def test_suppressed_context_is_not_part_of_the_chain(self):
        try:
            try:
                raise KeyError("hidden")
            except KeyError:
                raise ValueError("shown") from None
        except ValueError as e:
            self.assertEqual(previous_errors(e), [])


class TestDescribeException(unittest.TestCase):
    def test_raised_error_points_at_its_origin(self):
        try:
            raise CodedRuntimeError("boom", 7)
        except CodedRuntimeError as e:
            details = describe_exception(e)

        self.assertEqual(details["class"], "problem_assertions.CodedRuntimeError")
        self.assertEqual(details["code"], 7)
        self.assertEqual(details["message"], "boom")
        self.assertEqual(details["file"], __file__)
        self.assertGreater(details["line"], 0)
        self.assertEqual(details["trace"][-1]["function"], "test_raised_error_points_at_its_origin")

    def test_unraised_error(self):
        details = describe_exception(OSError(2, "No such file"))
        self.assertEqual(details["code"], 2)
        self.assertEqual(details["file"], "")
        self.assertEqual(details["trace"], [])


class TestSanitize(unittest.TestCase):
    def test_scalars_pass_through(self):
        for value in (None, True, 3, 1.5, "text"):
            with self.subTest(value=value):
                self.assertEqual(sanitize(value), value)

    def test_resources_are_dropped(self):
        self.assertIs(sanitize(print), DROP)
        self.assertIs(sanitize(threading.Thread(target=print)), DROP)


if __name__ == "__main__":
    unittest.main()
