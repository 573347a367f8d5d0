import enum


class ActivityType(str, enum.Enum):
    course = "Course"
    project = "Project"
    reading = "Reading"
    practice = "Practice"
    video = "Video"
    workshop = "Workshop"
    certification = "Certification"
    other = "Other"


class ActivityStatus(str, enum.Enum):
    not_started = "NotStarted"
    in_progress = "InProgress"
    completed = "Completed"
    paused = "Paused"
    cancelled = "Cancelled"


class RecommendationType(str, enum.Enum):
    learning_path = "LearningPath"
    weekly_schedule = "WeeklySchedule"
    task_suggestion = "TaskSuggestion"
    skill_gap_analysis = "SkillGapAnalysis"
    resource_recommendation = "ResourceRecommendation"
