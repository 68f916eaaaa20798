"""Tests for the call-site recognizers."""

import pytest
from conftest import by_key, find_call

from fetchmap.analyzer import FrontendAnalyzer
from fetchmap.parsers import (
    CallSite,
    GenericFetcherParser,
    HttpClientParser,
    QueryHookParser,
    RawFetchParser,
)

USER_FIELDS = {
    "id": {"type": "string", "required": True},
    "name": {"type": "string", "required": True},
}

USER_TYPES = """
interface User { id: string; name: string }
"""


class TestRawFetchParser:
    """Test fetch() and fetchAPI() recognition."""

    def test_plain_get(self, analyze):
        [record] = analyze('fetch("/api/users");')
        assert record.to_dict() == {
            "endpoint": "/api/users",
            "method": "GET",
            "source": "frontend-static",
        }

    def test_method_and_stringified_body(self, analyze):
        records = analyze(
            """
            interface NewUser { name: string; age?: number }

            export async function create(user: NewUser) {
              const res = await fetch("/api/users", {
                method: "POST",
                body: JSON.stringify(user),
              });
              return res.json();
            }
            """
        )
        [record] = records
        assert record.method == "POST"
        assert record.request.to_dict() == {
            "type": "object",
            "fields": {
                "name": {"type": "string", "required": True},
                "age": {"type": "number", "required": False},
            },
        }
        assert record.response is None

    def test_lowercase_method_is_normalized(self, analyze):
        [record] = analyze('fetch("/api/items/1", { method: "delete" });')
        assert record.key == "DELETE:/api/items/1"

    def test_then_callback_return_type(self, analyze):
        [record] = analyze(
            USER_TYPES
            + """
            fetch("/api/users").then((res): Promise<User[]> => res.json());
            """
        )
        assert record.response[200].to_dict() == {
            "type": "array",
            "items": {"type": "object", "fields": USER_FIELDS},
        }

    def test_fetch_api_helper(self, analyze):
        [record] = analyze('api.fetchAPI("/api/me");')
        assert record.key == "GET:/api/me"

    def test_non_url_first_argument(self, analyze):
        assert analyze('fetch("Unauthorized Error");') == []

    def test_parser_ignores_other_callees(self, make_program):
        program = make_program({"src/app.ts": 'load("/api/x");'})
        analyzer = FrontendAnalyzer(program=program)
        parser = RawFetchParser(analyzer.parsers[0].ctx)
        site = CallSite(program.files[0], find_call(program.files[0], "load"))
        assert parser.try_parse(site) is None


class TestHttpClientParser:
    """Test axios recognition."""

    def test_verb_with_type_argument(self, analyze):
        [record] = analyze(
            USER_TYPES + 'axios.get<User[]>("/api/users");\n'
        )
        assert record.method == "GET"
        assert record.response[200].items.to_dict() == {
            "type": "object",
            "fields": USER_FIELDS,
        }

    def test_data_argument_for_write_verbs(self, analyze):
        [record] = analyze(
            """
            const payload = { name: "x", active: true };
            axios.put("/api/users/1", payload);
            """
        )
        assert record.method == "PUT"
        assert record.request.to_dict() == {
            "type": "object",
            "fields": {
                "name": {"type": "string", "required": True},
                "active": {"type": "boolean", "required": True},
            },
        }

    def test_get_ignores_second_argument(self, analyze):
        [record] = analyze(
            'axios.get("/api/users", { params: { page: 1 } });\n'
        )
        assert record.request is None

    def test_patch_verb(self, analyze):
        [record] = analyze('axios.patch("/api/users/1", { name: "y" });')
        assert record.method == "PATCH"
        assert record.request.fields["name"].type == "string"

    def test_bare_call_with_config_object(self, analyze):
        [record] = analyze(
            """
            const form = { file: "avatar.png" };
            axios({ url: "/api/upload", method: "post", data: form });
            """
        )
        assert record.key == "POST:/api/upload"
        assert record.request.fields["file"].type == "string"

    def test_bare_call_with_url(self, analyze):
        [record] = analyze('axios("/api/ping");')
        assert record.key == "GET:/api/ping"

    def test_unresolvable_url(self, make_program):
        program = make_program(
            {"src/app.ts": "export const go = (u: string) => axios.get(u);\n"}
        )
        analyzer = FrontendAnalyzer(program=program)
        parser = HttpClientParser(analyzer.parsers[0].ctx)
        file = program.files[0]
        site = CallSite(file, find_call(file, "axios.get"))
        assert parser.try_parse(site) is None


class TestQueryHookParser:
    """Test useQuery / useMutation recognition."""

    def test_query_key_url(self, analyze):
        [record] = analyze(
            USER_TYPES
            + """
            export function useUsers() {
              return useQuery<User[]>({ queryKey: ["/api/users"], queryFn: load });
            }
            """
        )
        assert record.key == "GET:/api/users"
        assert record.response[200].type == "array"

    def test_query_key_without_slash(self, analyze):
        [record] = analyze('useQuery({ queryKey: ["users"] });')
        assert record.key == "GET:users"

    def test_mutation_defaults_to_post(self, analyze):
        [record] = analyze('useMutation({ queryKey: ["/api/users"] });')
        assert record.key == "POST:/api/users"

    def test_mutation_key_requires_slash(self, analyze):
        assert analyze('useMutation({ queryKey: ["users"] });') == []

    def test_missing_query_key(self, make_program):
        program = make_program(
            {"src/app.ts": "useQuery({ queryFn: () => load() });\n"}
        )
        analyzer = FrontendAnalyzer(program=program)
        parser = QueryHookParser(analyzer.parsers[0].ctx)
        file = program.files[0]
        site = CallSite(file, find_call(file, "useQuery"))
        assert parser.try_parse(site) is None


class TestGenericFetcherParser:
    """Test the registry-driven fallback."""

    WRAPPER = """
    export async function apiFetch(path: string, init?: RequestInit) {
      const res = await fetch(path, init);
      return res.json();
    }
    """

    def test_registered_wrapper(self, analyze):
        [record] = analyze(self.WRAPPER + 'apiFetch("/api/items");\n')
        assert record.key == "GET:/api/items"

    def test_method_override_from_options(self, analyze):
        [record] = analyze(
            self.WRAPPER + 'apiFetch("/api/items/1", { method: "DELETE" });\n'
        )
        assert record.key == "DELETE:/api/items/1"

    def test_last_method_override_wins(self, analyze):
        [record] = analyze(
            self.WRAPPER
            + 'apiFetch("/api/items", { method: "PUT" }, { method: "PATCH" });\n'
        )
        assert record.method == "PATCH"

    def test_body_property_is_request(self, analyze):
        [record] = analyze(
            self.WRAPPER
            + """
            const item = { title: "a", qty: 2 };
            apiFetch("/api/items", { method: "POST", body: JSON.stringify(item) });
            """
        )
        assert record.method == "POST"
        assert record.request.to_dict() == {
            "type": "object",
            "fields": {
                "title": {"type": "string", "required": True},
                "qty": {"type": "number", "required": True},
            },
        }

    def test_name_heuristics(self, analyze):
        records = by_key(
            analyze(
                """
                interface NewUser { email: string }
                const newUser: NewUser = { email: "a@b.c" };
                apiCreateUser("/api/users", newUser);
                apiUpdateUser("/api/users/1");
                apiDeleteUser("/api/users/2");
                fetchAll("/api/users");
                """
            )
        )
        assert set(records) == {
            "POST:/api/users",
            "PUT:/api/users/1",
            "DELETE:/api/users/2",
            "GET:/api/users",
        }
        assert records["POST:/api/users"].request.fields["email"].required

    def test_url_shaped_argument_is_not_a_body(self, analyze):
        [record] = analyze('apiPost("/api/a", "/api/b");')
        assert record.key == "POST:/api/a"
        assert record.request is None

    def test_unknown_callee(self, analyze):
        assert analyze('doSomething("/api/x");') == []

    def test_swr_hook_through_registry(self, analyze):
        [record] = analyze(
            USER_TYPES + 'useSWR<User>("profile", fetcher);\n'
        )
        assert record.key == "GET:profile"
        assert record.response[200].fields["name"].type == "string"

    def test_short_argument_list(self, make_program):
        program = make_program(
            {
                "src/app.ts": """
                export function send(method: string, url: string) {
                  return fetch(url, { method });
                }
                send("GET");
                """
            }
        )
        analyzer = FrontendAnalyzer(program=program)
        parser = GenericFetcherParser(analyzer.parsers[0].ctx)
        file = program.files[0]
        assert parser.try_parse(CallSite(file, find_call(file, "send"))) is None


@pytest.mark.parametrize(
    "parser_cls, name",
    [
        (RawFetchParser, "fetch"),
        (HttpClientParser, "http-client"),
        (QueryHookParser, "query-hook"),
        (GenericFetcherParser, "generic"),
    ],
)
def test_parser_names(parser_cls, name):
    assert parser_cls.name == name
