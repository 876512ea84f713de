from pathlib import Path

import pytest

from linkdrip.domain.plans import DEFAULT_PLANS, PlanCatalog
from linkdrip.rules.loader import load_rules

ROOT = Path(__file__).resolve().parents[2]


class TestRulesLoader:
    def test_project_rules_load(self):
        rules = load_rules(ROOT / "rules.yaml")
        assert rules.project.slug == "linkdrip"
        assert rules.validation.standard.min_domain_authority == 20
        assert rules.validation.premium.max_spam_score == 2
        assert rules.matching.premium.min_score == 60
        assert rules.outreach.platform_name == "LinkDrip"
        assert "resource_page" in rules.crawler.continuous_types

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("project: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(path)

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("project:\n  slug: linkdrip\n")
        with pytest.raises(ValueError, match="Rules validation failed"):
            load_rules(path)

    def test_fenced_yaml_block_in_markdown(self, tmp_path):
        source = (ROOT / "rules.yaml").read_text()
        path = tmp_path / "RULES.md"
        path.write_text(f"# Rules\n\nSome notes.\n\n```yaml\n{source}\n```\n\nTrailing text.\n")
        assert load_rules(path).project.slug == "linkdrip"


class TestPlanCatalog:
    def test_limits_from_rules(self):
        rules = load_rules(ROOT / "rules.yaml")
        catalog = PlanCatalog.from_rules(rules.plans)

        pro = catalog.limits_for("Pro")
        assert (pro.websites, pro.drips_per_day, pro.splashes_per_month) == (5, 15, 7)

    def test_unknown_plan_falls_back_to_default(self):
        catalog = PlanCatalog()
        assert catalog.limits_for("Enterprise") == DEFAULT_PLANS["Free Trial"]
        assert catalog.limits_for(None) == DEFAULT_PLANS["Free Trial"]
