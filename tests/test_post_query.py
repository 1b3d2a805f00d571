import pytest
from sqlalchemy import func, select
from postboard.models.category import Category
from postboard.models.post import Post
from postboard.repositories.post_query import (
    PAGE_SIZE,
    PostFilterQuery,
    count_pages,
    normalize_page,
    page_offset,
)
from postboard.repositories.predicates import PredicateBuilder


class TestPageArithmetic:
    @pytest.mark.parametrize("raw, expected", [
        (None, 1),
        ("", 1),
        ("abc", 1),
        ("0", 1),
        ("-3", 1),
        (0, 1),
        (True, 1),
        ("2", 2),
        (" 7 ", 7),
        (3, 3),
    ])
    def test_normalize_page(self, raw, expected):
        """非法页码回退到第 1 页"""
        assert normalize_page(raw) == expected

    def test_offset(self):
        assert page_offset(1) == 0
        assert page_offset(2) == PAGE_SIZE
        assert page_offset(5) == 40

    def test_count_pages(self):
        assert count_pages(0) == 0
        assert count_pages(1) == 1
        assert count_pages(10) == 1
        assert count_pages(11) == 2
        assert count_pages(25) == 3


class TestPredicateBuilder:
    def test_empty_builder_compiles_to_none(self):
        assert PredicateBuilder().compile() is None

    def test_add_if_skips_missing_values(self):
        builder = PredicateBuilder().add_if(None, Category.name).add_if("Travel", Category.name)
        assert len(builder) == 1

    def test_values_are_bound_parameters(self):
        """用户输入只作为绑定参数出现，不拼接进 SQL"""
        evil = "x' OR '1'='1"
        where = PredicateBuilder().add(Category.name, "eq", evil).add(Category.id, "eq", 3).compile()
        compiled = where.compile()
        assert evil not in str(compiled)
        assert evil in compiled.params.values()
        assert 3 in compiled.params.values()

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            PredicateBuilder().add(Category.name, "like", "x")


class TestPostListing:
    def test_empty_store(self, session):
        page = PostFilterQuery(session).run()
        assert page.rows == []
        assert page.total_posts == 0
        assert page.total_pages == 0
        assert page.current_page == 1

    def test_rows_are_denormalized(self, session, make_post, categories):
        make_post("Tagged post", tags=["tech", "ai"], category_id=categories["Technology"])
        row = PostFilterQuery(session).run().rows[0]
        assert row.title == "Tagged post"
        assert row.username == "author"
        assert row.category_id == categories["Technology"]
        assert row.category == "Technology"
        assert row.tags == ["ai", "tech"]
        assert row.joined_tags == "ai,tech"
        assert row.created_at is not None

    def test_post_without_tags_or_category(self, session, make_post):
        make_post("Bare post")
        row = PostFilterQuery(session).run().rows[0]
        assert row.tags == []
        assert row.joined_tags == ""
        assert row.category_id is None
        assert row.category is None

    def test_newest_first(self, session, make_post):
        for i in range(3):
            make_post(f"Post number {i}")
        titles = [row.title for row in PostFilterQuery(session).run().rows]
        assert titles == ["Post number 2", "Post number 1", "Post number 0"]

    def test_pagination(self, session, make_post):
        for i in range(23):
            make_post(f"Post number {i:02d}")
        query = PostFilterQuery(session)

        first = query.run(1)
        assert len(first.rows) == PAGE_SIZE
        assert first.total_posts == 23
        assert first.total_pages == 3
        assert first.rows[0].title == "Post number 22"

        third = query.run(3)
        assert [row.title for row in third.rows] == ["Post number 02", "Post number 01", "Post number 00"]

    def test_page_beyond_last(self, session, make_post):
        for i in range(12):
            make_post(f"Post number {i:02d}")
        page = PostFilterQuery(session).run(5)
        assert page.rows == []
        assert page.current_page == 5
        assert page.total_posts == 12
        assert page.total_pages == 2

    def test_huge_page_number(self, session, make_post):
        """超大页码返回空结果，总数不变"""
        make_post("Only post")
        page = PostFilterQuery(session).run("99999999999999999999")
        assert page.rows == []
        assert page.current_page == 99999999999999999999
        assert page.total_posts == 1
        assert page.total_pages == 1

    def test_invalid_page_uses_first_page(self, session, make_post):
        make_post("Only post")
        page = PostFilterQuery(session).run("not-a-number")
        assert page.current_page == 1
        assert len(page.rows) == 1


class TestPostFilters:
    @pytest.fixture
    def seeded(self, make_post, categories):
        return {
            "p1": make_post("Deep learning today", tags=["tech", "ai"], category_id=categories["Technology"]),
            "p2": make_post("Trip to the coast", tags=["travel"], category_id=categories["Travel"]),
            "p3": make_post("Gadgets on the road", tags=["tech", "travel"], category_id=categories["Travel"]),
        }

    def test_filter_by_tag(self, session, seeded):
        page = PostFilterQuery(session).run(tag_name="ai")
        assert [row.id for row in page.rows] == [seeded["p1"]]
        assert page.total_posts == 1
        assert page.total_pages == 1

    def test_tag_filter_keeps_full_tag_list(self, session, seeded):
        """按标签过滤时，返回的标签列表仍是文章的全部标签"""
        row = PostFilterQuery(session).run(tag_name="ai").rows[0]
        assert row.tags == ["ai", "tech"]

    def test_filter_by_category(self, session, seeded):
        page = PostFilterQuery(session).run(category_name="Travel")
        assert {row.id for row in page.rows} == {seeded["p2"], seeded["p3"]}
        assert page.total_posts == 2

    def test_filters_intersect(self, session, seeded):
        page = PostFilterQuery(session).run(tag_name="tech", category_name="Travel")
        assert [row.id for row in page.rows] == [seeded["p3"]]
        assert page.total_posts == 1

    def test_exact_match_only(self, session, seeded):
        assert PostFilterQuery(session).run(tag_name="Tech").total_posts == 0
        assert PostFilterQuery(session).run(category_name="travel").total_posts == 0

    def test_unknown_filter_values(self, session, seeded):
        page = PostFilterQuery(session).run(tag_name="missing", category_name="Nowhere")
        assert page.rows == []
        assert page.total_posts == 0
        assert page.total_pages == 0

    def test_blank_filters_are_ignored(self, session, seeded):
        assert PostFilterQuery(session).run(tag_name="", category_name="").total_posts == 3

    def test_count_is_distinct(self, session, seeded):
        """多标签文章在计数中只算一次"""
        assert PostFilterQuery(session).count() == 3

    def test_listing_does_not_write(self, session, seeded):
        before = session.execute(select(func.max(Post.updated_at))).scalar_one()
        PostFilterQuery(session).run(tag_name="tech")
        assert not session.new and not session.dirty
        assert session.execute(select(func.max(Post.updated_at))).scalar_one() == before


class TestGetSinglePost:
    def test_get(self, session, make_post, categories):
        post_id = make_post("Single post", tags=["b", "a"], category_id=categories["Travel"])
        row = PostFilterQuery(session).get(post_id)
        assert row.id == post_id
        assert row.category == "Travel"
        assert row.tags == ["a", "b"]

    def test_get_missing(self, session):
        assert PostFilterQuery(session).get(999) is None
