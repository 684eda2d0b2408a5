"""Tests for roost.assembly.build: the whole assembly phase."""

import logging

import pytest

from roost.assembly import Assembly, assemble
from roost.assembly.admin import AdminContext
from roost.config import AppConfig
from roost.discovery.walker import MemorySource
from roost.errors import ConfigurationError, DuplicateModelError, MethodNotAllowed, NotFound
from roost.routing.route import Route

CONFIG = AppConfig(name="blog")


def index(request):
    return "index"


def custom(request):
    return "custom"


def manual(request):
    return "manual"


class TestAssembleControllers:
    def test_bare_callable(self) -> None:
        assembly = assemble(CONFIG, MemorySource({"blog/controllers/foo/bar.py": index}))
        match = assembly.router.match("DELETE", "/foo/bar")
        assert match.route.handler is index
        assert match.route.methods is None

    def test_explicit_route_ignores_inferred_url(self) -> None:
        source = MemorySource(
            {"blog/controllers/foo/bar.py": {"path": "/custom", "controller": custom, "methods": ["GET"]}}
        )
        assembly = assemble(CONFIG, source)
        routes = assembly.router.routes
        assert routes == [Route("/custom", custom, frozenset({"GET"}))]
        with pytest.raises(NotFound):
            assembly.router.match("GET", "/foo/bar")

    def test_group(self) -> None:
        source = MemorySource(
            {
                "blog/controllers/foo.py": [
                    {"path": "", "controller": index},
                    {"path": "sub", "controller": custom},
                    {"path": "/abs", "controller": manual},
                ]
            }
        )
        router = assemble(CONFIG, source).router
        assert router.match("GET", "/foo").route.handler is index
        assert router.match("GET", "/foo/sub").route.handler is custom
        assert router.match("GET", "/abs").route.handler is manual

    def test_excluded_controllers_skipped(self) -> None:
        source = MemorySource(
            {
                "blog/controllers/!draft.py": index,
                "blog/controllers/!old/thing.py": index,
                "blog/controllers/live.py": index,
            }
        )
        assert [r.path for r in assemble(CONFIG, source).router.routes] == ["/live"]

    def test_unrecognized_export_is_warned(self, caplog) -> None:
        source = MemorySource({"blog/controllers/odd.py": 42})
        with caplog.at_level(logging.WARNING, logger="roost.assembly"):
            assembly = assemble(CONFIG, source)
        assert assembly.router.routes == []
        assert "odd is ignored: no controller returned (type:int)" in caplog.text

    def test_malformed_declaration_skips_module(self, caplog) -> None:
        source = MemorySource(
            {
                "blog/controllers/bad.py": {"path": "/bad", "controller": "not callable"},
                "blog/controllers/good.py": index,
            }
        )
        with caplog.at_level(logging.WARNING, logger="roost.assembly"):
            assembly = assemble(CONFIG, source)
        assert [r.path for r in assembly.router.routes] == ["/good"]
        assert "blog/controllers/bad.py is ignored" in caplog.text

    def test_router_is_compiled(self) -> None:
        assembly = assemble(CONFIG, MemorySource({}))
        assert assembly.router.compiled
        with pytest.raises(RuntimeError):
            assembly.router.add(Route("/late", index))


class TestAssembleModels:
    def test_models_registered(self) -> None:
        source = MemorySource(
            {
                "blog/models/post.py": {"fields": {"title": "text"}},
                "blog/models/post/comment.py": {"fields": {"body": "text"}},
            }
        )
        models = assemble(CONFIG, source).models
        assert sorted(models) == ["post", "post_comment"]
        assert models["post_comment"].path_key == "post/comment"

    def test_non_model_is_warned(self, caplog) -> None:
        source = MemorySource({"blog/models/junk.py": "nope"})
        with caplog.at_level(logging.WARNING, logger="roost.assembly"):
            models = assemble(CONFIG, source).models
        assert len(models) == 0
        assert "junk is ignored: not a model (type:str)" in caplog.text

    def test_duplicate_table_name_aborts(self) -> None:
        source = MemorySource(
            {
                "blog/models/post/comment.py": {"fields": {}},
                "blog/models/post_comment.py": {"fields": {}},
            }
        )
        with pytest.raises(DuplicateModelError):
            assemble(CONFIG, source)

    def test_models_are_read_only(self) -> None:
        models = assemble(CONFIG, MemorySource({"blog/models/post.py": {"fields": {}}})).models
        with pytest.raises(TypeError):
            models["x"] = None  # type: ignore[index]


class TestAssembleAdmins:
    def test_admins_linked_and_tree_built(self, caplog) -> None:
        source = MemorySource(
            {
                "blog/models/post/comment.py": {"fields": {}},
                "blog/admin/post/comment.py": {"label": "Comments", "hook": print},
                "blog/admin/ghost.py": {"label": "Ghost"},
            }
        )
        with caplog.at_level(logging.WARNING, logger="roost.assembly"):
            assembly = assemble(CONFIG, source)

        comment = assembly.admins["/post/comment"]
        assert comment.model is assembly.models["post_comment"]
        assert assembly.admins["/ghost"].model is None
        assert "admin ghost has no corresponding model" in caplog.text

        tree = assembly.admin_tree
        assert tree.name == "models"
        assert [leaf.name for leaf in tree.files] == ["ghost"]
        post = tree.folder("post")
        assert post is not None
        assert post.files[0].name == "comment"
        assert post.files[0].data == {"label": "Comments"}

    def test_custom_admin_root(self) -> None:
        config = AppConfig(name="blog", admin_root_name="admin")
        assert assemble(config, MemorySource({})).admin_tree.name == "admin"


class TestAdminGenerator:
    def test_generated_routes_merged(self) -> None:
        seen: list[AdminContext] = []

        def generate(context: AdminContext):
            seen.append(context)
            return [{"path": "/admin/tree", "controller": index, "methods": ["GET"]}]

        source = MemorySource(
            {
                "blog/models/user.py": {"fields": {"email": "text"}},
                "blog/admin/user.py": {"label": "Users"},
            }
        )
        assembly = assemble(CONFIG, source, admin_generator=generate)

        assert assembly.router.match("GET", "/admin/tree").route.handler is index
        context = seen[0]
        assert context.user_model is assembly.models["user"]
        assert list(context.admins) == ["/user"]
        assert context.tree is assembly.admin_tree

    def test_invalid_generated_route_skipped(self, caplog) -> None:
        def generate(context: AdminContext):
            yield {"path": "/admin/bad", "controller": None}
            yield ("/admin/good", index)

        with caplog.at_level(logging.WARNING, logger="roost.assembly"):
            assembly = assemble(CONFIG, MemorySource({}), admin_generator=generate)
        assert [r.path for r in assembly.router.routes] == ["/admin/good"]
        assert "admin route is ignored" in caplog.text


class TestManualRoutes:
    def test_manual_route_wins(self) -> None:
        source = MemorySource({"blog/controllers/foo.py": index})
        assembly = assemble(
            CONFIG, source, extra_routes=[Route("/foo", manual, frozenset({"GET"}))]
        )
        assert assembly.router.match("GET", "/foo").route.handler is manual
        # Other methods still reach the discovered implicit-all controller
        assert assembly.router.match("POST", "/foo").route.handler is index

    def test_without_source(self) -> None:
        assembly = assemble(AppConfig(), extra_routes=[Route("/x", manual, frozenset({"GET"}))])
        assert isinstance(assembly, Assembly)
        assert len(assembly.models) == 0
        assert assembly.admin_tree.folders == ()
        with pytest.raises(MethodNotAllowed):
            assembly.router.match("POST", "/x")

    def test_source_requires_name(self) -> None:
        with pytest.raises(ConfigurationError, match="name"):
            assemble(AppConfig(), MemorySource({}))
