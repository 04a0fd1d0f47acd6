"""Supabase persistence for clients, deals and prioritizations."""
