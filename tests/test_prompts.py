from skillsync.db import Activity, ActivityStatus, Skill, SkillCategory
from skillsync.prompts import (
    build_learning_path_prompt,
    build_skill_gap_prompt,
    build_weekly_schedule_prompt,
    group_by_category,
    prioritize_skills,
)


def _skill(name, level, target, category=None, **kw):
    return Skill(
        user_id="u1",
        name=name,
        proficiency_level=level,
        target_level=target,
        category=SkillCategory(name=category) if category else None,
        **kw,
    )


def test_learning_path_without_activities():
    prompt = build_learning_path_prompt(_skill("Rust", 1, 4))

    assert "- **Skill Name:** Rust" in prompt
    assert "- **Category:** General" in prompt
    assert "- **Proficiency Gap:** 3 levels to improve" in prompt
    assert "- Total activities logged: 0" in prompt
    assert "Completed activities" not in prompt
    assert "Additional Context" not in prompt
    assert "### 6. Milestones & Success Criteria" in prompt


def test_learning_path_with_activities_and_context():
    skill = _skill("Python", 2, 5, "Backend", description="Async services")
    skill.activities = [
        Activity(user_id="u1", title="Course", status=ActivityStatus.completed, duration_minutes=90),
        Activity(user_id="u1", title="Project", status=ActivityStatus.in_progress, duration_minutes=30),
    ]

    prompt = build_learning_path_prompt(skill)

    assert "- **Category:** Backend" in prompt
    assert "- **Additional Context:** Async services" in prompt
    assert "- Total activities logged: 2" in prompt
    assert "- Completed activities: 1" in prompt
    assert "- Total study time invested: 2.0 hours" in prompt


def test_prioritize_by_gap_then_target():
    skills = [
        _skill("A", 4, 5),
        _skill("B", 1, 5),
        _skill("C", 2, 4),
        _skill("D", 3, 5),
        _skill("E", 5, 5),
        _skill("F", 0, 2),
        _skill("G", 1, 1),
    ]
    ordered = [s.name for s in prioritize_skills(skills)]
    assert ordered == ["B", "D", "C", "F", "A"]


def test_weekly_schedule_lists_top_five():
    skills = [_skill(f"S{i}", 1, 1 + i) for i in range(7)]
    prompt = build_weekly_schedule_prompt(skills)

    assert "- **S6** (General)" in prompt
    assert "- **S2** (General)" in prompt
    assert "S1**" not in prompt
    assert "S0**" not in prompt
    assert "  - Gap: 6 levels" in prompt
    assert "- Include at least one rest day" in prompt


def test_group_by_category_orders_by_size():
    skills = [
        _skill("Vue", 3, 4, "Frontend"),
        _skill("SQL", 2, 4, "Data"),
        _skill("Pandas", 4, 5, "Data"),
        _skill("Kanban", 2, 2),
    ]
    groups = group_by_category(skills)
    assert [name for name, _ in groups] == ["Data", "Frontend", "Uncategorized"]


def test_skill_gap_indicators():
    skills = [
        _skill("SQL", 2, 4, "Data"),
        _skill("Pandas", 1, 5, "Data"),
        _skill("Kanban", 3, 3),
    ]
    prompt = build_skill_gap_prompt(skills)

    assert "### Data:" in prompt
    assert "### Uncategorized:" in prompt
    assert "- **Pandas**: Level 1/5 → Target: 5/5 (⚠️ Large Gap)" in prompt
    assert "- **SQL**: Level 2/5 → Target: 4/5 (→ Growing)" in prompt
    assert "- **Kanban**: Level 3/5 → Target: 3/5 (✓ Target Reached)" in prompt
    # highest proficiency first inside a category
    assert prompt.index("**SQL**") < prompt.index("**Pandas**")
