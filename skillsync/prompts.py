from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Sequence

from skillsync.db import ActivityStatus, Skill

MAX_SCHEDULE_SKILLS = 5


def _category_name(skill: Skill, default: str) -> str:
    return skill.category.name if skill.category is not None else default


def _gap_indicator(gap: int) -> str:
    if gap > 2:
        return "⚠️ Large Gap"
    if gap > 0:
        return "→ Growing"
    return "✓ Target Reached"


def build_learning_path_prompt(skill: Skill) -> str:
    lines = [
        "# Task: Create a Personalized Learning Path",
        "",
        "## Skill Information:",
        f"- **Skill Name:** {skill.name}",
        f"- **Category:** {_category_name(skill, 'General')}",
        f"- **Current Proficiency:** {skill.proficiency_level}/5",
        f"- **Target Proficiency:** {skill.target_level}/5",
        f"- **Proficiency Gap:** {skill.gap} levels to improve",
    ]
    if skill.description:
        lines.append(f"- **Additional Context:** {skill.description}")

    activities = list(skill.activities or [])
    lines += [
        "",
        "## Progress Tracking:",
        f"- Total activities logged: {len(activities)}",
    ]
    if activities:
        completed = sum(1 for a in activities if a.status == ActivityStatus.completed)
        total_hours = sum(a.duration_minutes or 0 for a in activities) / 60.0
        lines.append(f"- Completed activities: {completed}")
        lines.append(f"- Total study time invested: {total_hours:.1f} hours")

    lines += [
        "",
        "## Required Output:",
        "Create a comprehensive, actionable learning path structured as follows:",
        "",
        "### 1. Learning Roadmap",
        "Break down the journey from current level to target level into clear stages.",
        "",
        "### 2. Topic Breakdown",
        "For each stage, list specific topics, concepts, and technologies to master.",
        "",
        "### 3. Recommended Resources",
        "Suggest high-quality courses, books, documentation, tutorials, and video content for each stage.",
        "",
        "### 4. Practical Projects",
        "Propose hands-on projects that will solidify learning and build portfolio pieces.",
        "",
        "### 5. Timeline Estimation",
        "Provide realistic time estimates for each stage based on 5-10 hours per week of dedicated study.",
        "",
        "### 6. Milestones & Success Criteria",
        "Define clear checkpoints to measure progress at each stage.",
    ]
    return "\n".join(lines) + "\n"


def prioritize_skills(skills: Sequence[Skill], limit: int = MAX_SCHEDULE_SKILLS) -> List[Skill]:
    """Largest proficiency gap first, then highest target level."""
    ordered = sorted(skills, key=lambda s: (s.gap, s.target_level), reverse=True)
    return ordered[:limit]


def build_weekly_schedule_prompt(skills: Sequence[Skill]) -> str:
    lines = [
        "# Task: Design a Balanced Weekly Study Schedule",
        "",
        "## Active Skills Requiring Development:",
    ]
    for skill in prioritize_skills(skills):
        lines += [
            f"- **{skill.name}** ({_category_name(skill, 'General')})",
            f"  - Current Level: {skill.proficiency_level}/5",
            f"  - Target Level: {skill.target_level}/5",
            f"  - Gap: {skill.gap} levels",
        ]

    lines += [
        "",
        "## Schedule Requirements:",
        "- **Total Weekly Hours:** 7-10 hours distributed across the week",
        "- **Priority System:** Allocate more time to skills with larger proficiency gaps",
        "- **Learning Balance:** Mix of theory, practice, and project work",
        "- **Work-Life Balance:** Consider typical work schedules (evenings 7-9 PM on weekdays, flexible weekend blocks)",
        "",
        "## Required Output:",
        "Create a day-by-day schedule with the following structure:",
        "",
        "### For each day (Monday-Sunday):",
        "- Time slot (e.g., 7:00 PM - 8:30 PM)",
        "- Skill to focus on",
        "- Specific task or activity (e.g., 'Complete React hooks tutorial', 'Build mini-project')",
        "- Duration in minutes",
        "",
        "### Additional Elements:",
        "- Include at least one rest day",
        "- Suggest short 15-minute review sessions for reinforcement",
        "- Recommend one longer weekend session (2-3 hours) for project work",
    ]
    return "\n".join(lines) + "\n"


def group_by_category(skills: Sequence[Skill]) -> List[tuple[str, List[Skill]]]:
    groups: Dict[str, List[Skill]] = defaultdict(list)
    for skill in skills:
        groups[_category_name(skill, "Uncategorized")].append(skill)
    # sorted() is stable, so equal-sized groups keep first-seen order
    return sorted(groups.items(), key=lambda kv: len(kv[1]), reverse=True)


def build_skill_gap_prompt(skills: Sequence[Skill]) -> str:
    lines = [
        "# Task: Comprehensive Skill Gap Analysis",
        "",
        "## Current Skill Portfolio:",
    ]
    for category, group in group_by_category(skills):
        lines += ["", f"### {category}:"]
        for skill in sorted(group, key=lambda s: s.proficiency_level, reverse=True):
            lines.append(
                f"- **{skill.name}**: Level {skill.proficiency_level}/5 → "
                f"Target: {skill.target_level}/5 ({_gap_indicator(skill.gap)})"
            )

    lines += [
        "",
        "## Analysis Requirements:",
        "",
        "### 1. Skill Distribution Assessment",
        "Analyze the balance across different categories. Identify if the developer is:",
        "- Well-rounded or specialized",
        "- Frontend-heavy, backend-heavy, or full-stack",
        "- Lacking in any critical areas",
        "",
        "### 2. Critical Gaps Identification",
        "Highlight the most significant gaps that should be prioritized, considering:",
        "- Skills with largest proficiency gaps",
        "- Industry demands and market trends",
        "- Synergies between existing and missing skills",
        "",
        "### 3. Complementary Skills Recommendations",
        "Suggest 3-5 new skills that would:",
        "- Enhance the existing skill set",
        "- Fill obvious gaps in the portfolio",
        "- Increase marketability and career opportunities",
        "",
        "### 4. 90-Day Priority Action Plan",
        "Recommend specific skills to focus on for the next 3 months, with clear reasoning.",
        "",
        "### 5. Career Path Alignment",
        "Based on the current skills, suggest 2-3 career paths or roles that would be a good fit:",
        "- Roles that align well with current strengths",
        "- Emerging opportunities that match the skill trajectory",
        "- What additional skills would be needed for each path",
    ]
    return "\n".join(lines) + "\n"
