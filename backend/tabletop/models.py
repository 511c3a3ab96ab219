from tabletop import db
from flask_login import UserMixin
from datetime import datetime

ROLE_CREATOR = 'Creator'
ROLE_PLAYER = 'Player'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    # Subject issued by the external identity provider
    external_uid = db.Column(db.String(128), unique=True, nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=True)
    creator_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    creator = db.relationship('User')
    participants = db.relationship('GameParticipant', back_populates='game', cascade='all, delete-orphan')
    map = db.relationship('GameMap', back_populates='game', uselist=False, cascade='all, delete-orphan')
    custom_tokens = db.relationship('Token', back_populates='game', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'creator_id': self.creator_id,
        }


class GameParticipant(db.Model):
    __tablename__ = 'game_participant'
    __table_args__ = (db.UniqueConstraint('game_id', 'user_id', name='uq_participant_game_user'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    role = db.Column(db.String(16), nullable=False, default=ROLE_PLAYER)  # Creator, Player
    is_accepted = db.Column(db.Boolean, nullable=False, default=False)
    game = db.relationship('Game', back_populates='participants')
    user = db.relationship('User')


class GameMap(db.Model):
    __tablename__ = 'game_map'
    id = db.Column(db.Integer, primary_key=True)
    # unique: at most one map per game
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, unique=True, index=True)
    name = db.Column(db.String(128), nullable=False, default='Map Name')
    background_image_url = db.Column(db.String(512), nullable=True)
    drawn_elements = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    game = db.relationship('Game', back_populates='map')

    def to_dict(self):
        return {
            'id': self.id,
            'gameId': self.game_id,
            'name': self.name,
            'mapUrl': self.background_image_url,
            'drawnElements': list(self.drawn_elements or []),
        }


class Token(db.Model):
    __tablename__ = 'token'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    image_url = db.Column(db.String(512), nullable=True)
    is_custom = db.Column(db.Boolean, nullable=False, default=False)
    # Only meaningful for custom tokens
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=True, index=True)
    game = db.relationship('Game', back_populates='custom_tokens')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'imageUrl': self.image_url,
            'isCustom': self.is_custom,
            'gameId': self.game_id,
        }
