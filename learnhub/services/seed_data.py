"""
Default badge and achievement catalogs, loaded on first startup and by the
admin seed endpoints.
"""

DEFAULT_BADGES = [
    # Course badges
    {"name": "First Steps", "description": "Complete your first course", "icon": "🎓", "color": "#3B82F6", "category": "course", "rarity": "common", "requirement": {"metric": "coursesCompleted", "value": 1}, "xp_reward": 50, "order": 1},
    {"name": "Knowledge Seeker", "description": "Complete 5 courses", "icon": "📚", "color": "#8B5CF6", "category": "course", "rarity": "rare", "requirement": {"metric": "coursesCompleted", "value": 5}, "xp_reward": 150, "order": 2},
    {"name": "Learning Master", "description": "Complete 10 courses", "icon": "🏆", "color": "#F59E0B", "category": "course", "rarity": "epic", "requirement": {"metric": "coursesCompleted", "value": 10}, "xp_reward": 300, "order": 3},

    # Quiz badges
    {"name": "Quiz Novice", "description": "Complete your first quiz", "icon": "📝", "color": "#10B981", "category": "quiz", "rarity": "common", "requirement": {"metric": "quizzesCompleted", "value": 1}, "xp_reward": 25, "order": 4},
    {"name": "Quiz Expert", "description": "Pass 10 quizzes", "icon": "✅", "color": "#8B5CF6", "category": "quiz", "rarity": "rare", "requirement": {"metric": "quizzesPassed", "value": 10}, "xp_reward": 100, "order": 5},
    {"name": "Perfect Score", "description": "Get 100% on any quiz", "icon": "💯", "color": "#F59E0B", "category": "quiz", "rarity": "epic", "requirement": {"metric": "perfectQuiz", "value": 1}, "xp_reward": 200, "order": 6},

    # Review badges
    {"name": "Reviewer", "description": "Write your first review", "icon": "⭐", "color": "#F59E0B", "category": "review", "rarity": "common", "requirement": {"metric": "reviewsWritten", "value": 1}, "xp_reward": 30, "order": 7},
    {"name": "Critic", "description": "Write 5 reviews", "icon": "📢", "color": "#8B5CF6", "category": "review", "rarity": "rare", "requirement": {"metric": "reviewsWritten", "value": 5}, "xp_reward": 100, "order": 8},
    {"name": "Helpful Voice", "description": "Receive 10 helpful votes on your reviews", "icon": "🤝", "color": "#10B981", "category": "review", "rarity": "rare", "requirement": {"metric": "helpfulVotes", "value": 10}, "xp_reward": 100, "order": 9},

    # Streak badges
    {"name": "Consistent Learner", "description": "7-day login streak", "icon": "🔥", "color": "#EF4444", "category": "streak", "rarity": "rare", "requirement": {"metric": "streak", "value": 7}, "xp_reward": 100, "order": 10},
    {"name": "Dedication", "description": "30-day login streak", "icon": "💪", "color": "#F59E0B", "category": "streak", "rarity": "epic", "requirement": {"metric": "streak", "value": 30}, "xp_reward": 500, "order": 11},
    {"name": "Unstoppable", "description": "100-day login streak", "icon": "⚡", "color": "#8B5CF6", "category": "streak", "rarity": "legendary", "requirement": {"metric": "streak", "value": 100}, "xp_reward": 1000, "order": 12},

    # Achievement badges
    {"name": "Level 5", "description": "Reach level 5", "icon": "🌟", "color": "#3B82F6", "category": "achievement", "rarity": "rare", "requirement": {"metric": "level", "value": 5}, "xp_reward": 0, "order": 13},
    {"name": "Level 10", "description": "Reach level 10", "icon": "💫", "color": "#8B5CF6", "category": "achievement", "rarity": "epic", "requirement": {"metric": "level", "value": 10}, "xp_reward": 0, "order": 14},
    {"name": "XP Collector", "description": "Earn 1000 total XP", "icon": "💰", "color": "#F59E0B", "category": "achievement", "rarity": "epic", "requirement": {"metric": "totalXP", "value": 1000}, "xp_reward": 0, "order": 15},

    # Special badges
    {"name": "Early Adopter", "description": "Join in the first month", "icon": "🚀", "color": "#8B5CF6", "category": "special", "rarity": "legendary", "requirement": {"metric": "coursesCompleted", "value": 0}, "xp_reward": 0, "order": 16},
]

DEFAULT_ACHIEVEMENTS = [
    {"name": "First Lesson", "description": "Complete your first lesson", "icon": "👣", "color": "#10B981", "category": "learning", "type": "milestone", "requirements": [{"metric": "lessonsCompleted", "operator": ">=", "value": 1}], "rewards": {"xp": 50}, "order": 1},
    {"name": "Lesson Streak", "description": "Complete 5 lessons", "icon": "📖", "color": "#3B82F6", "category": "learning", "type": "milestone", "requirements": [{"metric": "lessonsCompleted", "operator": ">=", "value": 5}], "rewards": {"xp": 100}, "order": 2},
    {"name": "Quiz Ace", "description": "Pass 3 quizzes", "icon": "🎯", "color": "#8B5CF6", "category": "mastery", "type": "milestone", "requirements": [{"metric": "quizzesPassed", "operator": ">=", "value": 3}], "rewards": {"xp": 200}, "order": 3},
    {"name": "Flawless", "description": "Get 100% on any quiz", "icon": "💯", "color": "#EF4444", "category": "mastery", "type": "challenge", "requirements": [{"metric": "stats.perfectQuizzes", "operator": ">=", "value": 1}], "rewards": {"xp": 150, "badge": "Perfect Score"}, "order": 4},
    {"name": "Course Completer", "description": "Complete your first course", "icon": "🎓", "color": "#F59E0B", "category": "learning", "type": "milestone", "requirements": [{"metric": "coursesCompleted", "operator": ">=", "value": 1}], "rewards": {"xp": 500}, "order": 5},
    {"name": "Course Collector", "description": "Complete 3 courses", "icon": "🏆", "color": "#FFD700", "category": "mastery", "type": "milestone", "requirements": [{"metric": "coursesCompleted", "operator": ">=", "value": 3}], "rewards": {"xp": 1000, "title": "Scholar"}, "order": 6},
    {"name": "Steady Learner", "description": "Study 5 days in a row", "icon": "📅", "color": "#14B8A6", "category": "dedication", "type": "milestone", "requirements": [{"metric": "currentStreak", "operator": ">=", "value": 5}], "rewards": {"xp": 300}, "order": 7},
    {"name": "Marathon Runner", "description": "Study for 30 days straight", "icon": "🔥", "color": "#DC2626", "category": "dedication", "type": "milestone", "requirements": [{"metric": "currentStreak", "operator": ">=", "value": 30}], "rewards": {"xp": 1500}, "order": 8},
    {"name": "Social Butterfly", "description": "Leave 5 course reviews", "icon": "🦋", "color": "#EC4899", "category": "social", "type": "milestone", "requirements": [{"metric": "reviewsWritten", "operator": ">=", "value": 5}], "rewards": {"xp": 200}, "order": 9},
    {"name": "Community Helper", "description": "Have 10 helpful votes on your reviews", "icon": "🤝", "color": "#10B981", "category": "social", "type": "milestone", "requirements": [{"metric": "stats.totalHelpfulVotes", "operator": ">=", "value": 10}], "rewards": {"xp": 500}, "order": 10},
    {"name": "Well Rounded", "description": "Finish a course, pass 5 quizzes, write a review and keep a 3-day streak", "icon": "🧭", "color": "#0EA5E9", "category": "exploration", "type": "challenge", "requirements": [{"metric": "coursesCompleted", "operator": ">=", "value": 1}, {"metric": "quizzesPassed", "operator": ">=", "value": 5}, {"metric": "reviewsWritten", "operator": ">=", "value": 1}, {"metric": "currentStreak", "operator": ">=", "value": 3}], "rewards": {"xp": 400}, "order": 11},
    {"name": "Rising Star", "description": "Earn 1000 XP", "icon": "⭐", "color": "#FCD34D", "category": "exploration", "type": "milestone", "requirements": [{"metric": "totalXP", "operator": ">=", "value": 1000}], "rewards": {"xp": 100}, "order": 12},
    {"name": "Legend", "description": "Earn 5000 XP", "icon": "👑", "color": "#9333EA", "category": "mastery", "type": "milestone", "requirements": [{"metric": "totalXP", "operator": ">=", "value": 5000}], "rewards": {"xp": 500, "title": "Legend"}, "order": 13},
    {"name": "Night Scholar", "description": "Log 10 hours of study time", "icon": "🦉", "color": "#6366F1", "category": "dedication", "type": "hidden", "requirements": [{"metric": "stats.totalStudyTime", "operator": ">=", "value": 600}], "rewards": {"xp": 250}, "is_hidden": True, "order": 14},
]
