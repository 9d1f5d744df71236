"""Seed data builders for the sandbox store."""

from __future__ import annotations

from typing import Any


def build_experiences() -> list[dict[str, Any]]:
    """Return the sandbox catalog, newest first as the plugin lists it."""
    return [
        {"id": 101, "title": "Degustazione Chianti Classico", "category": "wine", "price": 45.0, "rating": 4.8, "popularity": 320, "date": "2025-06-14", "location": "Greve in Chianti", "duration": "half-day"},
        {"id": 102, "title": "Tour in barca alle Cinque Terre", "category": "outdoor", "price": 120.0, "rating": 4.6, "popularity": 210, "date": "2025-06-10", "location": "Monterosso", "duration": "full-day"},
        {"id": 103, "title": "Corso di pasta fresca", "category": "food", "price": 65.0, "rating": 4.9, "popularity": 415, "date": "2025-06-08", "location": "Bologna", "duration": "half-day"},
        {"id": 104, "title": "Cena stellata in vigna", "category": "food", "price": 220.0, "rating": 4.7, "popularity": 95, "date": "2025-06-05", "location": "Montalcino", "duration": "evening"},
        {"id": 105, "title": "Visita guidata agli Uffizi", "category": "culture", "price": 38.0, "rating": 4.5, "popularity": 530, "date": "2025-06-03", "location": "Firenze", "duration": "2h"},
        {"id": 106, "title": "Wine & Bike nelle Langhe", "category": "wine", "price": 89.0, "rating": 4.4, "popularity": 150, "date": "2025-05-30", "location": "Barolo", "duration": "full-day"},
        {"id": 107, "title": "Trekking sul Vesuvio", "category": "outdoor", "price": 50.0, "rating": 4.3, "popularity": 260, "date": "2025-05-28", "location": "Ercolano", "duration": "half-day"},
        {"id": 108, "title": "Degustazione Franciacorta", "category": "wine", "price": 150.0, "rating": 4.6, "popularity": 110, "date": "2025-05-25", "location": "Erbusco", "duration": "2h"},
        {"id": 109, "title": "Mercato e cucina siciliana", "category": "food", "price": 75.0, "rating": 4.8, "popularity": 190, "date": "2025-05-20", "location": "Palermo", "duration": "half-day"},
        {"id": 110, "title": "Opera all'Arena di Verona", "category": "culture", "price": 180.0, "rating": 4.9, "popularity": 610, "date": "2025-05-18", "location": "Verona", "duration": "evening"},
        {"id": 111, "title": "Kayak al tramonto sul Garda", "category": "outdoor", "price": 55.0, "rating": 4.2, "popularity": 85, "date": "2025-05-15", "location": "Sirmione", "duration": "2h"},
        {"id": 112, "title": "Aceto balsamico tradizionale", "category": "food", "price": 30.0, "rating": 4.5, "popularity": 140, "date": "2025-05-12", "location": "Modena", "duration": "2h"},
        {"id": 113, "title": "Vendemmia in Valpolicella", "category": "wine", "price": 95.0, "rating": 4.7, "popularity": 175, "date": "2025-05-10", "location": "Negrar", "duration": "full-day"},
        {"id": 114, "title": "Notte al Colosseo", "category": "culture", "price": 70.0, "rating": 4.6, "popularity": 720, "date": "2025-05-08", "location": "Roma", "duration": "evening"},
    ]


def build_vouchers() -> list[dict[str, Any]]:
    return [
        {"code": "WCEFP-GIFT-0001", "status": "active", "amount": 90.0, "product_name": "Degustazione Chianti Classico", "recipient_name": "Giulia Rossi", "recipient_email": "giulia@example.com", "sender_name": "Marco", "message": "Buon compleanno!", "created_date": "2025-03-01", "expiry_date": "2026-03-01"},
        {"code": "WCEFP-GIFT-0002", "status": "redeemed", "amount": 65.0, "product_name": "Corso di pasta fresca", "recipient_name": "Luca Bianchi", "recipient_email": "luca@example.com", "sender_name": "Anna", "message": None, "created_date": "2025-01-15", "expiry_date": "2026-01-15"},
        {"code": "WCEFP-GIFT-0003", "status": "expired", "amount": 120.0, "product_name": "Tour in barca alle Cinque Terre", "recipient_name": "Sara Verdi", "recipient_email": "sara@example.com", "sender_name": "Paolo", "message": None, "created_date": "2023-04-10", "expiry_date": "2024-04-10"},
        {"code": "WCEFP-GIFT-0004", "status": "active", "amount": 180.0, "product_name": "Opera all'Arena di Verona", "recipient_name": "Elena Neri", "recipient_email": "elena@example.com", "sender_name": "Franco", "message": "Per te", "created_date": "2025-04-20", "expiry_date": "2026-04-20"},
    ]


def build_bookings() -> list[dict[str, Any]]:
    return [
        {"id": 1, "created": "2025-06-10", "product_id": 101, "event_title": "Degustazione Chianti Classico", "date": "2025-06-14", "time": "10:00", "name": "Giulia Rossi", "email": "giulia@example.com", "adults": 2, "children": 0, "status": "confirmed", "total": 90.0, "meeting_point": "Cantina Greve"},
        {"id": 2, "created": "2025-06-12", "product_id": 101, "event_title": "Degustazione Chianti Classico", "date": "2025-06-14", "time": "10:00", "name": "Marco Gallo", "email": "marco@example.com", "adults": 3, "children": 1, "status": "pending", "total": 180.0, "meeting_point": "Cantina Greve"},
        {"id": 3, "created": "2025-05-10", "product_id": 103, "event_title": "Corso di pasta fresca", "date": "2025-06-08", "time": "17:00", "name": "Luca Bianchi", "email": "luca@example.com", "adults": 1, "children": 0, "status": "confirmed", "total": 65.0, "meeting_point": "Via Rizzoli 4"},
        {"id": 4, "created": "2025-06-01", "product_id": 110, "event_title": "Opera all'Arena di Verona", "date": "2025-05-18", "time": "21:00", "name": "Elena Neri", "email": "elena@example.com", "adults": 2, "children": 0, "status": "cancelled", "total": 360.0, "meeting_point": "Piazza Bra"},
    ]


def build_leaderboard() -> list[dict[str, Any]]:
    return [
        {"name": "Francesca", "level": 8, "points": 4700, "avatar": None},
        {"name": "Alessandro", "level": 7, "points": 3100, "avatar": None},
        {"name": "Chiara", "level": 5, "points": 1200, "avatar": None},
        {"name": "Davide", "level": 3, "points": 300, "avatar": None},
    ]


def build_translations() -> dict[str, dict[str, str]]:
    """Catalog keyed by locale, then by the English source string."""
    return {
        "it_IT": {
            "Book Now": "Prenota ora",
            "Check Availability": "Verifica disponibilità",
            "Select Date": "Seleziona data",
            "Participants": "Partecipanti",
            "Total Price": "Prezzo totale",
            "Confirm Booking": "Conferma prenotazione",
            "Duration": "Durata",
            "Meeting Point": "Punto d'incontro",
            "What's Included": "Cosa è incluso",
            "Reviews": "Recensioni",
            "Loading...": "Caricamento...",
            "Cancel Booking": "Annulla prenotazione",
        },
        "es_ES": {
            "Book Now": "Reservar ahora",
            "Check Availability": "Comprobar disponibilidad",
            "Select Date": "Seleccionar fecha",
            "Participants": "Participantes",
            "Total Price": "Precio total",
            "Loading...": "Cargando...",
        },
        "fr_FR": {
            "Book Now": "Réserver",
            "Check Availability": "Vérifier la disponibilité",
            "Select Date": "Choisir une date",
            "Participants": "Participants",
            "Total Price": "Prix total",
            "Loading...": "Chargement...",
        },
        "de_DE": {
            "Book Now": "Jetzt buchen",
            "Check Availability": "Verfügbarkeit prüfen",
            "Select Date": "Datum wählen",
            "Participants": "Teilnehmer",
            "Total Price": "Gesamtpreis",
            "Loading...": "Wird geladen...",
        },
    }
