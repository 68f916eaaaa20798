"""End-to-end tests for FrontendAnalyzer."""

from pathlib import Path

import pytest

from fetchmap.analyzer import FrontendAnalyzer
from fetchmap.config import AnalyzerConfig
from fetchmap.errors import ProjectConfigError
from fetchmap.parsers import CallSiteParser


class TestEndToEnd:
    """Test whole-project analysis."""

    def test_typed_axios_post(self, analyze):
        records = analyze(
            """
            import axios from "axios";

            interface CreatedUser { id: string; name: string }

            const newProject: { name: string } = { name: "demo" };

            export async function createProject() {
              return axios.post<CreatedUser>("/api/projects", newProject);
            }
            """
        )
        assert [r.to_dict() for r in records] == [
            {
                "endpoint": "/api/projects",
                "method": "POST",
                "source": "frontend-static",
                "request": {
                    "type": "object",
                    "fields": {"name": {"type": "string", "required": True}},
                },
                "response": {
                    "200": {
                        "type": "object",
                        "fields": {
                            "id": {"type": "string", "required": True},
                            "name": {"type": "string", "required": True},
                        },
                    }
                },
            }
        ]

    def test_template_placeholder(self, analyze):
        records = analyze(
            """
            export function loadUser(id: string) {
              return fetch(`/api/users/${id}`);
            }
            """
        )
        assert [r.key for r in records] == ["GET:/api/users/{id}"]

    def test_transitive_wrapper(self, analyze):
        records = analyze(
            {
                "src/lib/api.ts": """
                export async function genericFetcher(url: string) {
                  const res = await fetch(url);
                  return res.json();
                }
                """,
                "src/lib/users.ts": """
                import { genericFetcher } from "./api";

                export function getUser(userId: string) {
                  return genericFetcher(`/api/users/${userId}`);
                }
                """,
                "src/components/Profile.tsx": """
                import { getUser } from "../lib/users";

                export function Profile({ userId }: { userId: string }) {
                  const user = getUser(userId);
                  return <div>{String(user)}</div>;
                }
                """,
            }
        )
        assert [r.key for r in records] == ["GET:/api/users/{userId}"]

    def test_wrapper_registered_at_last_forwarded_parameter(self, analyze):
        records = analyze(
            """
            export async function load(primary: string, fallback: string) {
              const res = await fetch(primary);
              if (!res.ok) {
                return fetch(fallback);
              }
              return res.json();
            }

            export function reload(current: string) {
              return load(current, "/api/fallback");
            }
            """
        )
        assert [r.key for r in records] == ["GET:/api/fallback"]

    def test_same_key_is_merged(self, analyze):
        records = analyze(
            """
            interface User { id: string }
            axios.get("/api/me");
            axios.get<User>("/api/me");
            fetch("/api/me");
            """
        )
        [record] = records
        assert record.key == "GET:/api/me"
        assert record.response[200].fields["id"].type == "string"

    def test_no_duplicate_keys(self, analyze):
        records = analyze(
            """
            fetch("/api/a");
            fetch("/api/a", { method: "POST" });
            axios.post("/api/a");
            useQuery({ queryKey: ["/api/a"] });
            axios.delete("/api/a");
            """
        )
        keys = [r.key for r in records]
        assert len(keys) == len(set(keys))
        assert keys == ["GET:/api/a", "POST:/api/a", "DELETE:/api/a"]

    def test_error_message_literal_is_skipped(self, analyze):
        records = analyze(
            """
            export async function apiFetch(path: string) {
              const res = await fetch(path);
              if (!res.ok) {
                apiFetch("Unauthorized Error");
              }
              return res.json();
            }
            """
        )
        assert records == []

    def test_hook_key_acceptance(self, analyze):
        records = analyze(
            """
            useSWR("users", loader);
            apiGet("users");
            """
        )
        assert [r.key for r in records] == ["GET:users"]

    def test_self_referential_response_terminates(self, analyze):
        records = analyze(
            """
            interface Category { name: string; children: Category[] }
            axios.get<Category>("/api/categories");
            """
        )
        children = records[0].response[200].fields["children"]
        assert children.nested.items.to_dict() == {"type": "object"}

    def test_output_is_deterministic(self, make_program):
        sources = {
            "src/a.ts": 'fetch("/api/a"); axios.post("/api/b", { x: 1 });\n',
            "src/b.ts": 'useQuery({ queryKey: ["/api/c"] });\n',
        }
        first = FrontendAnalyzer(program=make_program(sources)).analyze()
        second = FrontendAnalyzer(program=make_program(sources)).analyze()
        assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
        assert [r.key for r in first] == [
            "GET:/api/a",
            "POST:/api/b",
            "GET:/api/c",
        ]


class TestFaultIsolation:
    """Test that one failing recognizer does not stop the scan."""

    def test_raising_parser_is_skipped(self, make_program):
        class Exploding(CallSiteParser):
            name = "exploding"

            def try_parse(self, site):
                raise RuntimeError("unexpected node shape")

        program = make_program({"src/app.ts": 'fetch("/api/ok");\n'})
        analyzer = FrontendAnalyzer(program=program)
        analyzer.parsers.insert(0, Exploding(analyzer.parsers[0].ctx))
        assert [r.key for r in analyzer.analyze()] == ["GET:/api/ok"]


class TestProjectLoading:
    """Test analysis of projects on disk."""

    def test_tsconfig_alias_across_files(self, write_project):
        root = write_project(
            {
                "tsconfig.json": """
                {
                  // path aliases
                  "compilerOptions": {
                    "baseUrl": ".",
                    "paths": { "@/*": ["src/*"] },
                  },
                }
                """,
                "src/types.ts": """
                export interface User { id: string; email: string }
                """,
                "src/lib/api.ts": """
                export async function apiFetch<T>(path: string): Promise<T> {
                  const res = await fetch(path);
                  return res.json();
                }
                """,
                "src/hooks/useUser.ts": """
                import type { User } from "@/types";
                import { apiFetch } from "@/lib/api";

                export const loadUser = (id: string) =>
                  apiFetch<User>(`/api/users/${id}`);
                """,
                "node_modules/pkg/index.ts": 'fetch("/api/vendored");\n',
            }
        )
        records = FrontendAnalyzer(root).analyze()
        assert [r.key for r in records] == ["GET:/api/users/{id}"]
        assert records[0].response[200].to_dict() == {
            "type": "object",
            "fields": {
                "id": {"type": "string", "required": True},
                "email": {"type": "string", "required": True},
            },
        }

    def test_custom_source_roots(self, write_project):
        root = write_project(
            {
                "src/a.ts": 'fetch("/api/from-src");\n',
                "pages/b.ts": 'fetch("/api/from-pages");\n',
            }
        )
        records = FrontendAnalyzer(
            root, AnalyzerConfig(source_roots=("pages",))
        ).analyze()
        assert [r.endpoint for r in records] == ["/api/from-pages"]

    def test_missing_project(self, tmp_path: Path):
        with pytest.raises(ProjectConfigError):
            FrontendAnalyzer(tmp_path / "missing")

    def test_project_is_a_file(self, tmp_path: Path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ProjectConfigError):
            FrontendAnalyzer(target)

    def test_invalid_tsconfig(self, write_project):
        root = write_project({"tsconfig.json": "{ not json"})
        with pytest.raises(ProjectConfigError, match="tsconfig"):
            FrontendAnalyzer(root)

    def test_requires_path_or_program(self):
        with pytest.raises(ProjectConfigError, match="no project path"):
            FrontendAnalyzer()
