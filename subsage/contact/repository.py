from typing import Any, Dict, List


def insert_contact(db, name: str, email: str, message: str) -> None:
    db.execute(
        "INSERT INTO contacts (name, email, message) VALUES (:name, :email, :message)",
        {"name": name, "email": email, "message": message},
    )


def insert_review(db, user_id: int, name: str, email: str, rating: int, review_text: str) -> None:
    db.execute(
        "INSERT INTO reviews (user_id, name, email, rating, review_text) "
        "VALUES (:user_id, :name, :email, :rating, :review_text)",
        {"user_id": user_id, "name": name, "email": email, "rating": rating, "review_text": review_text},
    )


def latest_reviews(db, limit: int = 4) -> List[Dict[str, Any]]:
    return db.fetch_many(
        "SELECT name, rating, review_text, created_at FROM reviews ORDER BY created_at DESC, id DESC LIMIT :limit",
        {"limit": limit},
    )
