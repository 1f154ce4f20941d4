from prwatch_core.models import ChangedFile, FileCategory
from prwatch_core.utils.files import (
    categorize_filename,
    categorize_files,
    determine_templates,
    has_readable_content,
)


def _file(name, status="modified", contents_url="https://api.github.com/repos/org/svc/contents/x"):
    return ChangedFile(filename=name, status=status, contents_url=contents_url)


class TestCategorizeFilename:
    def test_ruby(self):
        assert categorize_filename("app/models/user.rb") == {FileCategory.RUBY}
        assert categorize_filename("lib/tasks/cleanup.rake") == {FileCategory.RUBY}

    def test_javascript_variants(self):
        for name in ("a.js", "b.jsx", "c.ts", "d.tsx"):
            assert FileCategory.JAVASCRIPT in categorize_filename(f"web/{name}")

    def test_migration_is_database(self):
        assert categorize_filename("db/migrate/20240101_add_users.rb") == {FileCategory.RUBY, FileCategory.DATABASE}

    def test_sql_is_database(self):
        assert categorize_filename("reports/monthly.sql") == {FileCategory.DATABASE}

    def test_security_sensitive_controller(self):
        assert categorize_filename("app/controllers/auth_controller.rb") == {
            FileCategory.RUBY,
            FileCategory.SECURITY_SENSITIVE,
        }

    def test_security_match_at_root(self):
        assert FileCategory.SECURITY_SENSITIVE in categorize_filename("token_store.py")

    def test_security_match_is_case_insensitive(self):
        assert FileCategory.SECURITY_SENSITIVE in categorize_filename("src/Login/Form.tsx")

    def test_security_requires_segment_start(self):
        assert FileCategory.SECURITY_SENSITIVE not in categorize_filename("src/oauth_helpers.py")

    def test_test_files(self):
        assert FileCategory.TEST in categorize_filename("spec/models/user_spec.rb")
        assert FileCategory.TEST in categorize_filename("web/button.test.tsx")
        assert FileCategory.TEST in categorize_filename("tests/test_feedback.py")
        assert FileCategory.TEST in categorize_filename("pkg/cache_test.py")

    def test_unmatched_file_has_no_category(self):
        assert categorize_filename("README.md") == set()


class TestCategorizeFiles:
    def test_every_category_key_present(self):
        assert set(categorize_files([])) == set(FileCategory)

    def test_file_appears_in_each_matching_category(self):
        f = _file("app/controllers/auth_controller.rb")
        categories = categorize_files([f, _file("web/app.ts")])
        assert categories[FileCategory.RUBY] == [f]
        assert categories[FileCategory.SECURITY_SENSITIVE] == [f]
        assert [x.filename for x in categories[FileCategory.JAVASCRIPT]] == ["web/app.ts"]
        assert categories[FileCategory.DATABASE] == []


class TestDetermineTemplates:
    def test_default_always_first(self):
        assert determine_templates([_file("README.md")]) == ["default"]

    def test_ruby_and_javascript(self):
        files = [_file("app/models/user.rb"), _file("web/app.ts")]
        assert determine_templates(files) == ["default", "ruby", "javascript"]

    def test_fixed_order_regardless_of_file_order(self):
        files = [_file("db/schema.rb"), _file("web/app.ts")]
        assert determine_templates(files) == ["default", "ruby", "javascript", "database"]

    def test_security_and_test_categories_add_no_template(self):
        files = [_file("config/secrets.yml"), _file("tests/test_x.py")]
        assert determine_templates(files) == ["default"]


class TestHasReadableContent:
    def test_regular_file(self):
        assert has_readable_content(_file("app/models/user.rb"))

    def test_removed_file(self):
        assert not has_readable_content(_file("old.rb", status="removed"))

    def test_binary_file(self):
        assert not has_readable_content(_file("assets/logo.PNG"))

    def test_missing_contents_url(self):
        assert not has_readable_content(_file("app.rb", contents_url=None))
