"""Supabase-backed accessors for preferences, insights, activities and the email queue."""
