"""
Domain Constants: tables, score bands, default texts.

Values shared by services, routes and scripts.
"""

# =============================================================================
# Tables
# =============================================================================

TABLE_USERS = "auth"
TABLE_AUTO_LOGIN_TOKENS = "auto_login_tokens"
TABLE_RESUME_SUMMARY = "resume_summary"
TABLE_INTERVIEWS = "interviews"
TABLE_INTERVIEW_QUESTIONS = "interview_questions"
TABLE_INTERVIEW_RESULTS = "interview_results"

TABLE_PERSONAL_INFO = "personal_info"
TABLE_EDUCATION = "education"
TABLE_WORK_EXPERIENCE = "work_experience"
TABLE_SKILLS = "resume_skills"
TABLE_PROJECTS = "projects"
TABLE_POSITIONS = "positions_of_responsibility"
TABLE_ACHIEVEMENTS = "achievements"
TABLE_HOBBIES = "hobbies_activities"

# =============================================================================
# Interview
# =============================================================================

INTERVIEW_STATUS_IN_PROGRESS = "in_progress"
INTERVIEW_STATUS_COMPLETED = "completed"

DEFAULT_NUM_QUESTIONS = 5
DEFAULT_EXPERIENCE_LEVEL = "entry"
DEFAULT_QUESTION_TIME_LIMIT = 180  # seconds

# =============================================================================
# Score Bands
# =============================================================================
# (threshold, label) pairs, checked top-down with >=

PERFORMANCE_BANDS: tuple[tuple[float, str], ...] = (
    (90, "Excellent"),
    (80, "Strong"),
    (70, "Good"),
    (60, "Satisfactory"),
)
PERFORMANCE_FLOOR = "Needs Improvement"

RECOMMENDATION_BANDS: tuple[tuple[float, str], ...] = (
    (80, "Strong Hire"),
    (70, "Hire"),
    (60, "Maybe"),
)
RECOMMENDATION_FLOOR = "No Hire"

PENDING_PERFORMANCE = "Pending"
PENDING_RECOMMENDATION = "Under Review"

# =============================================================================
# Evaluation Defaults
# =============================================================================

DEFAULT_SCORE = 70
DEFAULT_PERFORMANCE_LEVEL = "Good"
DEFAULT_STRENGTHS = ["Shows understanding"]
DEFAULT_IMPROVEMENTS = ["Add more details"]
DEFAULT_FEEDBACK = "Response processed successfully"
DEFAULT_RECOMMENDATION = "Maybe"

# Heuristic result used when model output has no parsable JSON
FALLBACK_SCORE_RANGE = (60, 90)
FALLBACK_STRENGTHS = ["Clear communication", "Good understanding", "Relevant experience"]
FALLBACK_IMPROVEMENTS = ["Provide more specific examples", "Add technical details"]
FALLBACK_FEEDBACK = (
    "The response shows understanding but could benefit from more specific "
    "examples and technical depth."
)

# Body returned alongside a 500 when evaluation could not run at all
DEGRADED_EVALUATION = {
    "score": 60,
    "performance_level": "Satisfactory",
    "strengths": ["Attempted the question"],
    "improvements": ["Provide more detailed response"],
    "detailed_feedback": "Unable to complete full evaluation due to technical issue.",
    "recommendation": "Maybe",
}

# =============================================================================
# Auth
# =============================================================================

AUTO_LOGIN_TOKEN_TTL_MINUTES = 5
DEFAULT_SITE_URL = "http://localhost:8000"
