"""View models for the EduConnect web application."""
