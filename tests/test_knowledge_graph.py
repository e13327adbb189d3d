"""
Test suite for the knowledge graph service.

Validates that:
1. Baseline framework/error knowledge is seeded
2. Project scans are ingested with upsert semantics
3. Relevance queries rank, truncate and close relationships correctly
4. Related issues and user abilities are resolved
"""

import threading

import pytest

from task_orchestrator.config import KnowledgeGraphConfig
from task_orchestrator.core.graph_store import GraphStore
from task_orchestrator.core.knowledge_graph import KnowledgeGraphService
from task_orchestrator.models import GraphNode
from task_orchestrator.utils.exceptions import InvalidParameterError

BASELINE_NODES = 11
BASELINE_EDGES = 2


def make_scan():
    return {
        "files": [
            {"path": "src/app.py", "language": "python", "size": 120},
            {"path": "src/db.py", "language": "python"},
        ],
        "dependencies": {
            "direct": {"flask": "2.3.0", "sqlalchemy": "2.0"},
            "transitive": {"werkzeug": "2.3.0", "sqlalchemy": "2.0", "jinja2": "3.1"},
            "dependency_tree": {
                "flask": {"werkzeug": {}, "jinja2": {"markupsafe": None}},
                "sqlalchemy": {},
            },
        },
        "code_entities": [
            {"name": "create_app", "type": "function", "file": "src/app.py",
             "position": 10, "complexity": 3, "lines": 20},
            {"name": "get_session", "type": "function", "file": "src/db.py", "position": 5},
        ],
        "imports": [{"source_file": "src/app.py", "target_file": "src/db.py"}],
        "function_calls": [
            {"source_file": "src/app.py", "source_function": "create_app",
             "target_file": "src/db.py", "target_function": "get_session", "count": 2},
            {"source_file": "src/app.py", "source_function": "missing",
             "target_file": "src/db.py", "target_function": "get_session"},
        ],
    }


def edge_set(graph):
    return sorted((e["from_id"], e["to_id"], e["type"]) for e in graph.get_all_edges())


class TestBaselineKnowledge:

    def test_seeded_frameworks_and_errors(self):
        service = KnowledgeGraphService()
        graph = service.graph

        assert graph.node_count == BASELINE_NODES
        assert graph.edge_count == BASELINE_EDGES
        assert graph.get_node("framework:django")["data"]["ecosystem"] == "python"
        assert graph.get_node("error:python:indentation")["data"]["message"] == "IndentationError"
        assert service.graph.get_neighbors("framework:react", "ecosystem") == [
            "dependency:react-router",
            "dependency:redux",
        ]

    def test_existing_graph_is_not_reseeded(self):
        store = GraphStore()
        store.add_node(GraphNode(id="custom:1", type="custom", data={}))

        service = KnowledgeGraphService(graph=store)

        assert service.graph is store
        assert service.graph.node_count == 1


class TestProjectIngestion:

    def setup_method(self):
        self.service = KnowledgeGraphService()
        self.service.build_project_graph(make_scan())
        self.graph = self.service.graph

    def test_node_counts(self):
        assert self.graph.node_count == BASELINE_NODES + 8
        assert self.graph.edge_count == BASELINE_EDGES + 7

    def test_file_nodes(self):
        node = self.graph.get_node("file:src/app.py")
        assert node["type"] == "file"
        assert node["data"]["language"] == "python"
        assert node["data"]["size"] == 120

    def test_direct_flag_wins_over_transitive(self):
        assert self.graph.get_node("dependency:sqlalchemy")["data"]["is_direct"] is True
        assert self.graph.get_node("dependency:werkzeug")["data"]["is_direct"] is False

    def test_requires_edges_at_every_level(self):
        requires = [
            (e["from_id"], e["to_id"])
            for e in self.graph.get_all_edges()
            if e["type"] == "requires"
        ]
        assert requires == [
            ("dependency:flask", "dependency:werkzeug"),
            ("dependency:flask", "dependency:jinja2"),
            ("dependency:jinja2", "dependency:markupsafe"),
        ]

    def test_code_entities_are_contained_by_files(self):
        entity_id = "entity:function:create_app:src/app.py:10"
        node = self.graph.get_node(entity_id)

        assert node["type"] == "codeEntity"
        assert node["data"]["complexity"] == 3
        assert [e["to_id"] for e in self.graph.get_edges_from("file:src/app.py", "contains")] == [entity_id]

    def test_imports_and_resolved_calls(self):
        imports = self.graph.get_edges_from("file:src/app.py", "imports")
        calls = [e for e in self.graph.get_all_edges() if e["type"] == "calls"]

        assert [e["to_id"] for e in imports] == ["file:src/db.py"]
        assert len(calls) == 1
        assert calls[0]["from_id"] == "entity:function:create_app:src/app.py:10"
        assert calls[0]["to_id"] == "entity:function:get_session:src/db.py:5"
        assert calls[0]["data"] == {"count": 2}

    def test_call_count_defaults_to_one(self):
        scan = make_scan()
        del scan["function_calls"][0]["count"]
        service = KnowledgeGraphService()
        service.build_project_graph(scan)

        calls = [e for e in service.graph.get_all_edges() if e["type"] == "calls"]
        assert calls[0]["data"] == {"count": 1}

    def test_reingestion_does_not_duplicate_nodes(self):
        nodes_before = {n["id"]: n["data"] for n in self.graph.get_all_nodes()}
        edges_before = edge_set(self.graph)

        self.service.build_project_graph(make_scan())

        assert {n["id"]: n["data"] for n in self.graph.get_all_nodes()} == nodes_before
        assert self.graph.edge_count == BASELINE_EDGES + 14
        assert set(edge_set(self.graph)) == set(edges_before)

    def test_camel_case_scan_keys(self):
        service = KnowledgeGraphService()
        service.build_project_graph({
            "files": [{"path": "a.js", "lastModified": "2024-01-01"}],
            "dependencies": {"direct": {"react": "18"}, "dependencyTree": {"react": {"scheduler": {}}}},
            "codeEntities": [{"name": "App", "type": "class", "file": "a.js", "position": 1}],
            "imports": [{"sourceFile": "a.js", "targetFile": "b.js"}],
        })

        graph = service.graph
        assert graph.get_node("file:a.js")["data"]["last_modified"] == "2024-01-01"
        assert graph.has_node("entity:class:App:a.js:1")
        assert graph.get_edges_from("dependency:react", "requires")[0]["to_id"] == "dependency:scheduler"
        assert graph.get_edges_from("file:a.js", "imports")[0]["to_id"] == "file:b.js"

    def test_empty_scan(self):
        service = KnowledgeGraphService()
        service.build_project_graph({})

        assert service.graph.node_count == BASELINE_NODES


class TestRelevantContext:

    def setup_method(self):
        self.service = KnowledgeGraphService()
        self.service.build_project_graph(make_scan())

    def test_keyword_extraction(self):
        keywords = KnowledgeGraphService.extract_keywords("The API and the cache, with this flow! cache")
        assert keywords == ["cache", "flow", "cache"]

    def test_repeated_keyword_weighs_more(self):
        service = KnowledgeGraphService()

        bundle = service.get_relevant_context("flask flask flask react", max_nodes=1)

        assert [e["id"] for e in bundle["entities"]] == ["framework:flask"]

    def test_dependency_check_bonus_ranks_dependencies_first(self):
        bundle = self.service.get_relevant_context(
            {"content": "Check flask dependency versions", "metadata": {"taskType": "dependency-check"}},
            max_nodes=4,
        )

        assert [e["id"] for e in bundle["entities"]] == [
            "dependency:flask",
            "dependency:sqlalchemy",
            "dependency:werkzeug",
            "dependency:jinja2",
        ]
        assert [(r["from_id"], r["to_id"]) for r in bundle["relationships"]] == [
            ("dependency:flask", "dependency:werkzeug"),
            ("dependency:flask", "dependency:jinja2"),
        ]
        assert bundle["summary"] == {
            "entity_count": 4,
            "relationship_count": 2,
            "entity_types": {"dependency": 4},
            "relationship_types": {"requires": 2},
        }

    def test_static_analysis_bonus(self):
        bundle = self.service.get_relevant_context(
            {"content": "review create_app function", "metadata": {"taskType": "static-analysis"}}
        )

        assert [e["id"] for e in bundle["entities"]] == [
            "entity:function:create_app:src/app.py:10",
            "entity:function:get_session:src/db.py:5",
        ]
        assert bundle["relationships"][0]["type"] == "calls"
        assert bundle["relationships"][0]["data"] == {"count": 2}

    def test_task_record_input(self):
        bundle = self.service.get_relevant_context({
            "task_id": "task-1",
            "content": "Execute task: Check packages",
            "task_type": "dependency-check",
        })

        assert bundle["summary"]["entity_types"].get("dependency") == 4

    def test_plain_text_without_task_type(self):
        service = KnowledgeGraphService()
        bundle = service.get_relevant_context("Tell me about react routing")

        assert [e["id"] for e in bundle["entities"]] == ["framework:react"]
        assert bundle["relationships"] == []

    @pytest.mark.parametrize("max_nodes", [1, 2, 3, 5, 20])
    def test_entities_bounded_and_relationships_closed(self, max_nodes):
        bundle = self.service.get_relevant_context(
            {"content": "flask python create_app session check", "metadata": {"taskType": "static-analysis"}},
            max_nodes=max_nodes,
        )

        selected = {e["id"] for e in bundle["entities"]}
        assert len(bundle["entities"]) <= max_nodes
        for rel in bundle["relationships"]:
            assert rel["from_id"] in selected
            assert rel["to_id"] in selected

    @pytest.mark.parametrize("message", [None, "", "   ", {"metadata": {"taskType": "knowledge"}}])
    def test_missing_content_returns_empty_bundle(self, message):
        bundle = self.service.get_relevant_context(message)

        assert bundle["entities"] == []
        assert bundle["relationships"] == []
        assert bundle["summary"]["entity_count"] == 0

    def test_no_keywords_and_no_bonus(self):
        bundle = self.service.get_relevant_context("a b c")

        assert bundle["entities"] == []

    def test_custom_type_bonus(self):
        service = KnowledgeGraphService(type_bonuses={("knowledge", "framework"): 0.3})

        bundle = service.get_relevant_context({"content": "zzzz", "task_type": "knowledge"})

        assert bundle["summary"]["entity_types"] == {"framework": 7}

    def test_negative_max_nodes(self):
        with pytest.raises(InvalidParameterError):
            self.service.get_relevant_context("flask", max_nodes=-1)

    def test_config_default_max_nodes(self):
        service = KnowledgeGraphService(KnowledgeGraphConfig(max_context_nodes=1))

        bundle = service.get_relevant_context("flask framework")

        assert bundle["summary"]["entity_count"] == 1

    def test_returned_entities_are_copies(self):
        bundle = self.service.get_relevant_context("flask")
        bundle["entities"][0]["data"]["name"] = "changed"

        assert self.service.graph.get_node(bundle["entities"][0]["id"])["data"]["name"] != "changed"


class TestRelatedIssues:

    def test_known_pattern_from_text(self):
        service = KnowledgeGraphService()

        issues = service.get_related_issues("TypeError: Cannot read property of undefined (reading 'x')")

        assert issues == [{
            "type": "knownPattern",
            "message": "Cannot read property of undefined",
            "solutions": [
                "Check if object exists before accessing properties",
                "Use optional chaining",
            ],
        }]

    def test_exception_and_mapping_inputs(self):
        service = KnowledgeGraphService()

        assert service.get_related_issues(KeyError("foo"))[0]["message"] == "KeyError"
        assert service.get_related_issues(ModuleNotFoundError("No module named 'x'"))[0]["message"] == "ModuleNotFoundError"
        assert service.get_related_issues({"message": "IndentationError: unexpected indent"})[0]["message"] == "IndentationError"

    def test_falsy_error(self):
        service = KnowledgeGraphService()

        assert service.get_related_issues(None) == []
        assert service.get_related_issues("") == []

    def test_external_references_follow_known_patterns(self):
        def search(message):
            return [{"type": "githubIssue", "title": f"Similar: {message[:10]}", "url": "https://example.invalid/1"}]

        service = KnowledgeGraphService(reference_search=search)

        issues = service.get_related_issues("IndentationError: bad")

        assert [i["type"] for i in issues] == ["knownPattern", "githubIssue"]
        assert issues[1]["title"] == "Similar: Indentatio"

    def test_failing_reference_search_is_tolerated(self):
        def search(message):
            raise RuntimeError("rate limited")

        service = KnowledgeGraphService(reference_search=search)

        issues = service.get_related_issues("IndentationError")
        assert [i["type"] for i in issues] == ["knownPattern"]


class TestUserAbility:

    def test_default_profile(self):
        ability = KnowledgeGraphService().get_user_ability("u-1")

        assert ability["programming_level"] == "intermediate"
        assert ability["languages"]["python"] == 0.6
        assert ability["preferred_explanation_level"] == "detailed"

    def test_profile_computed_once_per_user(self):
        calls = []

        def policy(user_id):
            calls.append(user_id)
            return {"programming_level": "expert", "languages": {}, "frameworks": {},
                    "preferred_explanation_level": "brief"}

        service = KnowledgeGraphService(ability_policy=policy)
        first = service.get_user_ability("u-1")
        first["programming_level"] = "mutated"
        second = service.get_user_ability("u-1")
        service.get_user_ability("u-2")

        assert calls == ["u-1", "u-2"]
        assert second["programming_level"] == "expert"


class TestSnapshotAndConcurrency:

    def test_snapshot_is_independent(self):
        service = KnowledgeGraphService()
        snapshot = service.snapshot()

        snapshot.add_node(GraphNode(id="file:new.py", type="file", data={"path": "new.py"}))
        service.build_project_graph(make_scan())

        assert not service.graph.has_node("file:new.py")
        assert not snapshot.has_node("file:src/app.py")

    def test_concurrent_ingestion_and_queries(self):
        service = KnowledgeGraphService()
        errors = []

        def ingest():
            for _ in range(20):
                service.build_project_graph(make_scan())

        def query():
            try:
                for _ in range(20):
                    bundle = service.get_relevant_context("flask create_app", max_nodes=5)
                    assert len(bundle["entities"]) <= 5
            except Exception as e:  # surfaced below
                errors.append(e)

        threads = [threading.Thread(target=ingest), threading.Thread(target=query)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert service.graph.node_count == BASELINE_NODES + 8
