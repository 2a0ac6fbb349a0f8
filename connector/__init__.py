# Connect package
# Modules:
#   db.py              — secrets, Supabase clients and Postgres query helpers
#   logging_config.py  — one-time logging setup
#   results.py         — Result / ServiceError wrappers for external calls
#   notify.py          — user-facing toast notifications
#   session.py         — session store, auth events and the auth context
#   roles.py           — owner/user role assignment on sign-up
#   auth.py            — Supabase Auth gateway and Streamlit session helpers
#   redirect.py        — one-shot hand-off to n8n with the session JWT
#   retell.py          — client for the retell-calls Edge Function
#   calls.py           — web call provisioning state machine
#   widget.py          — browser-side Retell call component
#   routes.py          — route table and pending navigation
#   views.py           — shared page layout and auth form
