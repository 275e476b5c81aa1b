"""
Webflow CMS sync for scheduled classes.
"""
