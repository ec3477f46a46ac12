"""
Gmail to Brevo contact importer.

Scans Gmail threads carrying an import label, extracts the email addresses
written in their bodies and upserts them into a Brevo contact list.
"""
