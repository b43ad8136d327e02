"""TaskPulse: login streaks, daily attendance, task events and real-time notifications."""
