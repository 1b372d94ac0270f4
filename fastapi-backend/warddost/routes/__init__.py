from . import complaints, emergency, profile, reviews, wards

routers = [profile.router, wards.router, complaints.router, reviews.router, emergency.router]

__all__ = ["routers"]
