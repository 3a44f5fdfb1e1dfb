"""
Alert domain model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from newshound.utils.datetime_utils import to_utc
from newshound.utils.phrases import normalize_phrases


@dataclass
class Sentence:
    """
    A sentence of an alert body with its own keyphrases.

    Storage: PostgreSQL (newshound.sentence)

    Sentences are written after their owning alert and never change.
    """
    value: str
    phrases: List[str] = field(default_factory=list)
    id: Optional[int] = None        # Assigned by the store
    alert_id: Optional[int] = None  # Owning alert

    def __post_init__(self):
        self.phrases = normalize_phrases(self.phrases)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "value": self.value,
            "phrases": list(self.phrases),
            "alert_id": self.alert_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Sentence':
        return cls(
            value=data.get("value", ""),
            phrases=data.get("phrases", []),
            id=data.get("id"),
            alert_id=data.get("alert_id"),
        )


@dataclass
class Alert:
    """
    Alert domain model - storage-agnostic representation

    Storage: PostgreSQL (newshound.alert + newshound.sentence)

    An alert arrives from the extraction pipeline with:
    - top_phrases: ordered set of normalized keyphrases (stored, matched against)
    - tags: the set the alert is matched with (defaults to top_phrases, stored)
    - sentences + top_sentence: the designated top sentence is one of the
      sentence values; after storage top_sentence_id points at that row

    IDs are bigserial values assigned on insert; None until stored.
    """
    sender: Optional[str] = None        # Display name, resolved case-insensitively
    article_url: str = ""
    timestamp: Optional[datetime] = None
    top_phrases: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    subject: str = ""
    raw_body: str = ""
    body: str = ""
    sentences: List[Sentence] = field(default_factory=list)
    top_sentence: str = ""

    # Set by the store
    id: Optional[int] = None
    sender_id: Optional[int] = None
    top_sentence_id: Optional[int] = None

    def __post_init__(self):
        """Normalize phrase sets and timestamp"""
        self.top_phrases = normalize_phrases(self.top_phrases)
        self.tags = normalize_phrases(self.tags)
        self.timestamp = to_utc(self.timestamp)
        self.sentences = [
            s if isinstance(s, Sentence) else Sentence.from_dict(s)
            for s in self.sentences
        ]

    @property
    def match_tags(self) -> List[str]:
        """Tags used to look for matching alerts (falls back to top_phrases)"""
        return self.tags or self.top_phrases

    @property
    def is_stored(self) -> bool:
        return self.id is not None

    def find_top_sentence(self) -> Optional[Sentence]:
        """First sentence whose value equals the designated top sentence"""
        if not self.top_sentence:
            return None
        for sentence in self.sentences:
            if sentence.value == self.top_sentence:
                return sentence
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sender": self.sender,
            "sender_id": self.sender_id,
            "article_url": self.article_url,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "top_phrases": list(self.top_phrases),
            "tags": list(self.tags),
            "subject": self.subject,
            "raw_body": self.raw_body,
            "body": self.body,
            "sentences": [s.to_dict() for s in self.sentences],
            "top_sentence": self.top_sentence,
            "top_sentence_id": self.top_sentence_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Alert':
        return cls(
            sender=data.get("sender"),
            article_url=data.get("article_url", ""),
            timestamp=data.get("timestamp"),
            top_phrases=data.get("top_phrases", []),
            tags=data.get("tags", []),
            subject=data.get("subject", ""),
            raw_body=data.get("raw_body", ""),
            body=data.get("body", ""),
            sentences=[Sentence.from_dict(s) for s in data.get("sentences", [])],
            top_sentence=data.get("top_sentence", ""),
            id=data.get("id"),
            sender_id=data.get("sender_id"),
            top_sentence_id=data.get("top_sentence_id"),
        )
