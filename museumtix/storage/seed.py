"""Fixture data loaded into an empty store.

Every backend seeds the same records: one admin account, three exhibitions,
three ticket types and three approved testimonials.
"""

from datetime import datetime
from typing import List

from museumtix.auth.utils import get_password_hash
from museumtix.schemas import ExhibitionCreate, TestimonialCreate, TicketTypeCreate, UserCreate

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


def seed_users() -> List[UserCreate]:
    return [
        UserCreate(
            username=ADMIN_USERNAME,
            password=get_password_hash(ADMIN_PASSWORD),
            email="admin@museum.com",
            full_name="Admin User",
            language_preference="en",
            is_admin=True
        ),
    ]


def seed_exhibitions() -> List[ExhibitionCreate]:
    return [
        ExhibitionCreate(
            title="Ancient Egypt: The Eternal Life",
            description="Explore the fascinating world of ancient Egyptian beliefs about death and the afterlife through artifacts, mummies, and immersive experiences.",
            image_url="https://images.unsplash.com/photo-1566554273541-37a9ca77b91f?auto=format&fit=crop&w=800&q=80",
            start_date=datetime(2023, 9, 1),
            end_date=datetime(2023, 12, 15),
            is_featured=True,
            is_new=False
        ),
        ExhibitionCreate(
            title="Modern Masters: 20th Century Icons",
            description="A curated collection of masterpieces from Picasso, Dalí, Warhol, and more, showcasing the revolutionary art movements of the 20th century.",
            image_url="https://images.unsplash.com/photo-1605429523419-d828acb941d9?auto=format&fit=crop&w=800&q=80",
            start_date=datetime(2023, 10, 10),
            end_date=datetime(2024, 2, 28),
            is_featured=True,
            is_new=True
        ),
        ExhibitionCreate(
            title="Digital Frontiers: Art & Technology",
            description="An immersive exhibition exploring the intersection of art and technology through interactive installations, digital media, and virtual reality experiences.",
            image_url="https://images.unsplash.com/photo-1569587112025-0d160c8c6f7b?auto=format&fit=crop&w=800&q=80",
            start_date=datetime(2023, 11, 5),
            end_date=datetime(2024, 1, 15),
            is_featured=False,
            is_new=False
        ),
    ]


def seed_ticket_types() -> List[TicketTypeCreate]:
    return [
        TicketTypeCreate(
            name="General Admission",
            description="Access to permanent collections",
            price=18.0,
            color="primary",
            includes=[
                "Access to all permanent exhibitions",
                "Audio guide (additional $5)",
                "Valid for the selected date only",
            ],
            is_popular=False
        ),
        TicketTypeCreate(
            name="Premium Pass",
            description="All-inclusive museum experience",
            price=32.0,
            color="accent",
            includes=[
                "All permanent & special exhibitions",
                "Complimentary audio guide",
                "Priority entry (skip the line)",
                "One free museum publication",
            ],
            is_popular=True
        ),
        TicketTypeCreate(
            name="Special Exhibition",
            description="Entry to featured exhibitions",
            price=25.0,
            color="neutral",
            includes=[
                "Access to special exhibitions only",
                "Exhibition-specific guided tour",
                "Valid for the selected date & time",
            ],
            is_popular=False
        ),
    ]


def seed_testimonials() -> List[TestimonialCreate]:
    """Testimonials are approved after insert; create always stores them unapproved"""
    return [
        TestimonialCreate(
            name="Sarah J.",
            role="Museum Member",
            content="The chatbot made booking tickets so easy! I told it when I wanted to visit and how many people were in my group, and it handled everything.",
            rating=5,
            avatar_url="https://images.unsplash.com/photo-1494790108377-be9c29b29330?auto=format&fit=facearea&facepad=2&w=256&h=256&q=80"
        ),
        TestimonialCreate(
            name="Michael T.",
            role="International Visitor",
            content="I was impressed by how the chatbot could answer all my questions about the exhibitions in multiple languages.",
            rating=4,
            avatar_url="https://images.unsplash.com/photo-1500648767791-00dcc994a43e?auto=format&fit=facearea&facepad=2&w=256&h=256&q=80"
        ),
        TestimonialCreate(
            name="Rebecca K.",
            role="High School Teacher",
            content="As a teacher planning a field trip, the group booking feature was a lifesaver. It handled all 30 student tickets efficiently.",
            rating=5,
            avatar_url="https://images.unsplash.com/photo-1580489944761-15a19d654956?auto=format&fit=facearea&facepad=2&w=256&h=256&q=80"
        ),
    ]


def seed_storage(storage) -> None:
    """Load the fixture set through the public storage operations"""
    for user in seed_users():
        storage.create_user(user)
    for exhibition in seed_exhibitions():
        storage.create_exhibition(exhibition)
    for ticket_type in seed_ticket_types():
        storage.create_ticket_type(ticket_type)
    for testimonial in seed_testimonials():
        created = storage.create_testimonial(testimonial)
        storage.approve_testimonial(created.id)
