# models/db_models.py
import uuid
from datetime import datetime, UTC
from typing import Optional, List

from sqlalchemy import Column, JSON, Text
from sqlmodel import SQLModel, Field, Relationship, UniqueConstraint

def new_id() -> str:
    return str(uuid.uuid4())

def utc_now() -> datetime:
    return datetime.now(UTC)

# ===== POSTS =====

class Post(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    description: str = Field(sa_column=Column(Text, nullable=False))
    post_type: str = Field(default="Article")  # Article, Video
    url: Optional[str] = None
    content: Optional[str] = Field(default=None, sa_column=Column(Text))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    topic: str = Field(index=True)  # always stored lowercase
    slug: str = Field(index=True, unique=True)
    author: str
    status: str = Field(default="Draft", index=True)  # Draft, Published
    cover_image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None
    reading_time: Optional[int] = None
    view_count: int = Field(default=0)
    date_published: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    likes: List["PostLike"] = Relationship(back_populates="post", cascade_delete=True)
    playlist_entries: List["PlaylistPost"] = Relationship(back_populates="post", cascade_delete=True)

class PostLike(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_ip: str
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

    post_id: str = Field(foreign_key="post.id", index=True)

    post: Optional[Post] = Relationship(back_populates="likes")

    __table_args__ = (UniqueConstraint("post_id", "user_ip"),)

class Playlist(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    slug: str = Field(index=True, unique=True)
    cover_image: Optional[str] = None
    featured: bool = Field(default=False)
    order: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    playlist_posts: List["PlaylistPost"] = Relationship(
        back_populates="playlist",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "PlaylistPost.order"},
    )

class PlaylistPost(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    order: int = Field(default=0)

    playlist_id: str = Field(foreign_key="playlist.id", index=True)
    post_id: str = Field(foreign_key="post.id", index=True)

    playlist: Optional[Playlist] = Relationship(back_populates="playlist_posts")
    post: Optional[Post] = Relationship(back_populates="playlist_entries")

# ===== PROJECTS =====

class Project(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    slug: str = Field(index=True, unique=True)
    description: str = Field(default="", sa_column=Column(Text, nullable=False))  # legacy mirror of short_description
    short_description: str = Field(default="", sa_column=Column(Text, nullable=False))
    long_description: str = Field(default="", sa_column=Column(Text, nullable=False))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    tech_stack: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    links: dict = Field(default_factory=dict, sa_column=Column(JSON))
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    background_image: Optional[str] = None
    featured: bool = Field(default=False, index=True)
    status: str = Field(default="Draft", index=True)
    start_date: datetime = Field(default_factory=utc_now)
    release_date: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    team_members: List["ProjectTeamMember"] = Relationship(back_populates="project", cascade_delete=True)

class ProjectTeamMember(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    email: Optional[str] = None

    project_id: str = Field(foreign_key="project.id", index=True)

    project: Optional[Project] = Relationship(back_populates="team_members")

# ===== AUDIT =====

class ActivityLog(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = None
    entity_type: str = Field(index=True)  # Project, Post, ...
    entity_id: str = Field(index=True)
    project_id: Optional[str] = Field(default=None, index=True)
    action: str  # create, update, delete, status_change
    field: Optional[str] = None
    old_value: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    new_value: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    details: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now, index=True)

# ===== SINGLE-RECORD PAGE CONTENT =====

class Welcome(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    brief_bio: str = Field(sa_column=Column(Text, nullable=False))
    call_to_action: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)

class Contact(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    email_address: str
    phone_number: Optional[str] = None
    social_media_links: Optional[list] = Field(default=None, sa_column=Column(JSON))
    location: str
    availability: str
    additional_contact_methods: Optional[list] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now)

class SiteSettings(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    owner_name: str = ""
    site_name: str = ""
    nav_links: list = Field(default_factory=list, sa_column=Column(JSON))
    footer_text: str = ""
    footer_title: str = ""
    socials: dict = Field(default_factory=dict, sa_column=Column(JSON))
    seo_defaults: dict = Field(default_factory=dict, sa_column=Column(JSON))
    enabled_sections: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

# ===== VISITORS & ADMIN =====

class NewsletterSubscription(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)  # stored lowercase
    active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

class AdminUser(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    name: Optional[str] = None
    hashed_password: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
