# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration and password / Google OAuth sign-in (auth.users table)
# - Session management and token refresh
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() / auth.sign_in_with_password() - email accounts
- auth.exchange_code_for_session() - OAuth (Google) callback
- auth.get_user() - Get current user from JWT token
- auth.get_session() - Current session, if any
- auth.sign_out() - Logout users
- auth.on_auth_state_change() - SIGNED_IN / SIGNED_OUT / TOKEN_REFRESHED / USER_UPDATED events

Authorization data (role, sections, action buttons) is not kept in auth
metadata; it lives in app_user_profiles (see app/modules/profiles/models.py).
"""
