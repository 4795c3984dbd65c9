"""MediChat: AI health-information assistant with a per-user analysis history."""
