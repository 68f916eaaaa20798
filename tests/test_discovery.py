"""Tests for fetcher wrapper discovery."""

from fetchmap.discovery import (
    SEED_FETCHERS,
    FetcherInfo,
    FetcherRegistry,
    discover_fetchers,
)


class TestSeeds:
    """Test the built-in registry."""

    def test_seed_entries(self):
        assert SEED_FETCHERS["fetch"] == FetcherInfo(0)
        assert SEED_FETCHERS["axios"] == FetcherInfo(0)
        assert SEED_FETCHERS["axios.post"] == FetcherInfo(0, "POST")
        assert SEED_FETCHERS["useSWR"] == FetcherInfo(0)
        assert SEED_FETCHERS["useQuery"] == FetcherInfo(0)

    def test_no_wrappers_leaves_seeds(self, make_program):
        program = make_program(
            {"src/app.ts": 'export const x = () => fetch("/api/x");\n'}
        )
        registry = discover_fetchers(program)
        assert registry.discovered() == {}
        assert set(registry) == set(SEED_FETCHERS)
        assert registry.rounds == 1


class TestWrappers:
    """Test discovery of user-defined wrappers."""

    def test_direct_wrapper(self, make_program):
        program = make_program(
            {
                "src/lib/api.ts": """
                export async function apiFetch(path: string, init?: RequestInit) {
                  const res = await fetch(path, init);
                  return res.json();
                }
                """
            }
        )
        registry = discover_fetchers(program)
        assert registry.discovered() == {"apiFetch": FetcherInfo(0)}

    def test_parameter_position_is_recorded(self, make_program):
        program = make_program(
            {
                "src/lib/api.ts": """
                export function request(method: string, url: string) {
                  return fetch(url, { method });
                }
                """
            }
        )
        assert discover_fetchers(program)["request"] == FetcherInfo(1)

    def test_template_interpolation_counts(self, make_program):
        program = make_program(
            {
                "src/lib/api.ts": """
                export const getOrder = (orderId: string) =>
                  axios.get(`/api/orders/${orderId}`);
                """
            }
        )
        assert discover_fetchers(program)["getOrder"] == FetcherInfo(0)

    def test_last_forwarded_parameter_wins(self, make_program):
        program = make_program(
            {
                "src/lib/api.ts": """
                export async function load(primary: string, fallback: string) {
                  const res = await fetch(primary);
                  if (!res.ok) {
                    return fetch(fallback);
                  }
                  return res.json();
                }
                """
            }
        )
        assert discover_fetchers(program)["load"] == FetcherInfo(1)

    def test_literal_url_is_not_forwarding(self, make_program):
        program = make_program(
            {
                "src/lib/log.ts": """
                export function logEvent(message: string) {
                  return fetch("/api/log");
                }
                """
            }
        )
        assert "logEvent" not in discover_fetchers(program)

    def test_transitive_wrappers_any_order(self, make_program):
        """A wrapper declared before the wrapper it calls is still found."""
        program = make_program(
            {
                "src/lib/users.ts": """
                export function getUser(id: string) {
                  return genericFetcher(`/api/users/${id}`);
                }

                export async function genericFetcher(url: string) {
                  const res = await fetch(url);
                  return res.json();
                }
                """
            }
        )
        registry = discover_fetchers(program)
        assert registry["genericFetcher"] == FetcherInfo(0)
        assert registry["getUser"] == FetcherInfo(0)
        # one round per wrapper layer plus the final empty round
        assert registry.rounds == 3

    def test_method_wrapper_and_member_call(self, make_program):
        program = make_program(
            {
                "src/lib/client.ts": """
                export class Client {
                  fetchJson(url: string) {
                    return fetch(url).then((r) => r.json());
                  }
                }

                const client = new Client();

                export function loadPath(path: string) {
                  return client.fetchJson(path);
                }
                """
            }
        )
        registry = discover_fetchers(program)
        assert registry["fetchJson"] == FetcherInfo(0)
        assert registry["loadPath"] == FetcherInfo(0)

    def test_across_files(self, make_program):
        program = make_program(
            {
                "src/hooks/useUser.ts": """
                import { apiGet } from "../lib/api";
                export function fetchUser(userId: string) {
                  return apiGet(`/api/users/${userId}`);
                }
                """,
                "src/lib/api.ts": """
                export function apiGet(url: string) {
                  return axios.get(url);
                }
                """,
            }
        )
        registry = discover_fetchers(program)
        assert registry["apiGet"] == FetcherInfo(0)
        assert registry["fetchUser"] == FetcherInfo(0)


class TestRegistryLookup:
    """Test FetcherRegistry.lookup."""

    def test_exact_and_trailing_member(self):
        registry = FetcherRegistry(
            {"getUser": FetcherInfo(0), "axios.get": FetcherInfo(0, "GET")}
        )
        assert registry.lookup("axios.get") == FetcherInfo(0, "GET")
        assert registry.lookup("api.getUser") == FetcherInfo(0)
        assert registry.lookup("api.other") is None
        assert registry.lookup("unknown") is None

    def test_is_read_only_mapping(self):
        registry = FetcherRegistry({"a": FetcherInfo(2)})
        assert dict(registry) == {"a": FetcherInfo(2)}
        assert len(registry) == 1
