"""Check-in Rewards: daily check-ins, streaks, badges and reward redemptions."""
