"""Supabase client factory. Client is cached via Streamlit."""
import os

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client, Client

from portal.database import DatabaseClient

load_dotenv()


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


@st.cache_resource
def get_supabase() -> Client:
    return _env_client()


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()


def get_database() -> DatabaseClient:
    """DatabaseClient over the cached client (Streamlit pages)."""
    return DatabaseClient(get_supabase())


def get_database_uncached() -> DatabaseClient:
    return DatabaseClient(get_supabase_uncached())


def superuser_name() -> str:
    """Username seeded with is_superuser by init_db.py."""
    return os.environ.get("PORTAL_SUPERUSER", "admin")
