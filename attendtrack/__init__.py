"""QR attendance tracking with points, streaks, levels and achievements."""
