# Supabase tables: app_user_profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

app_user_profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - copied from auth.users on first sign-in
- full_name: text (nullable) - from user_metadata.full_name or user_metadata.name
- avatar_url: text (nullable)
- provider: text (not null, default 'email') - 'email' | 'google'
- role: text (nullable) - superadmin | ceo | deputy_ceo | sales | finance | design
- sections: text[] (not null, default '{}') - section ids the user may open
- action_buttons: text[] (not null, default '{}') - action ids; empty means every action
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Note: rows are created lazily the first time a user signs in. Only admins
(superadmin, ceo, deputy_ceo) change role/sections/action_buttons.
"""
