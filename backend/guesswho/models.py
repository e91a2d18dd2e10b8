from guesswho import db
from guesswho.services.session import CharacterCatalog


class Character(db.Model):
    __tablename__ = 'character'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    image = db.Column(db.String(256), nullable=True)
    has_hat = db.Column(db.Boolean, default=False, nullable=False)
    has_glasses = db.Column(db.Boolean, default=False, nullable=False)
    has_beard = db.Column(db.Boolean, default=False, nullable=False)
    hair_color = db.Column(db.String(16), nullable=False)
    gender = db.Column(db.String(16), nullable=False)

    @property
    def features(self):
        return {
            'hasHat': self.has_hat,
            'hasGlasses': self.has_glasses,
            'hasBeard': self.has_beard,
            'hairColor': self.hair_color,
            'gender': self.gender,
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'image': self.image,
            'features': self.features,
        }


DEFAULT_CHARACTERS = [
    # (name, has_hat, has_glasses, has_beard, hair_color, gender)
    ('Alex', False, True, False, 'black', 'male'),
    ('Emma', False, False, False, 'blonde', 'female'),
    ('Michael', True, False, True, 'brown', 'male'),
    ('Sophia', True, True, False, 'red', 'female'),
    ('James', False, False, True, 'black', 'male'),
    ('Olivia', True, False, False, 'brown', 'female'),
    ('William', False, True, False, 'white', 'male'),
    ('Charlotte', False, True, False, 'blonde', 'female'),
]

QUESTIONS = [
    {'id': 'q1', 'text': 'Does your character have a hat?', 'feature': 'hasHat', 'value': True},
    {'id': 'q2', 'text': 'Does your character wear glasses?', 'feature': 'hasGlasses', 'value': True},
    {'id': 'q3', 'text': 'Does your character have a beard?', 'feature': 'hasBeard', 'value': True},
    {'id': 'q4', 'text': 'Is your character male?', 'feature': 'gender', 'value': 'male'},
    {'id': 'q5', 'text': 'Is your character female?', 'feature': 'gender', 'value': 'female'},
    {'id': 'q6', 'text': 'Does your character have blonde hair?', 'feature': 'hairColor', 'value': 'blonde'},
    {'id': 'q7', 'text': 'Does your character have black hair?', 'feature': 'hairColor', 'value': 'black'},
    {'id': 'q8', 'text': 'Does your character have brown hair?', 'feature': 'hairColor', 'value': 'brown'},
    {'id': 'q9', 'text': 'Does your character have red hair?', 'feature': 'hairColor', 'value': 'red'},
    {'id': 'q10', 'text': 'Does your character have white hair?', 'feature': 'hairColor', 'value': 'white'},
]


def seed_characters():
    """Insert the default characters into an empty catalog. Returns the row count."""
    if Character.query.count() == 0:
        for name, hat, glasses, beard, hair, gender in DEFAULT_CHARACTERS:
            db.session.add(Character(
                name=name,
                image=f'/characters/{name.lower()}.svg',
                has_hat=hat,
                has_glasses=glasses,
                has_beard=beard,
                hair_color=hair,
                gender=gender,
            ))
        db.session.commit()
    return Character.query.count()


def load_catalog():
    return CharacterCatalog(c.to_dict() for c in Character.query.order_by(Character.id).all())
