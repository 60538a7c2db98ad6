"""Turn documents into interactive, optionally timed quizzes."""
