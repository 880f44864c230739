"""Static fallback question bank and the local sampler used when generation fails."""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence, Tuple

from ..utils.rng import build_rng, shuffled
from .ladder import Difficulty
from .schemas import Question

E, M, H = Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD


def _q(
    number: int,
    category: str,
    difficulty: Difficulty,
    prompt: str,
    choices: Tuple[str, str, str, str],
    correct_index: int,
) -> Question:
    return Question(
        id=f"fallback-{number}",
        category=category,
        difficulty=difficulty,
        prompt=prompt,
        choices=choices,
        correct_index=correct_index,
    )


FALLBACK_QUESTIONS: Tuple[Question, ...] = (
    _q(1, "General Knowledge", E, "What is the capital of France?",
       ("London", "Berlin", "Paris", "Madrid"), 2),
    _q(2, "Science", E, "What is H2O commonly known as?",
       ("Oxygen", "Hydrogen", "Water", "Carbon Dioxide"), 2),
    _q(3, "Geography", E, "Which continent is Egypt in?",
       ("Asia", "Africa", "Europe", "South America"), 1),
    _q(4, "Movies", E, 'Who directed the movie "Jaws"?',
       ("George Lucas", "Steven Spielberg", "Martin Scorsese", "Francis Ford Coppola"), 1),
    _q(5, "Sports", M, "In which sport would you perform a slam dunk?",
       ("Tennis", "Basketball", "Football", "Baseball"), 1),
    _q(6, "History", M, "In which year did World War II end?",
       ("1944", "1945", "1946", "1947"), 1),
    _q(7, "Science", M, "What is the chemical symbol for gold?",
       ("Go", "Gd", "Au", "Ag"), 2),
    _q(8, "Technology", M, "Who co-founded Microsoft along with Bill Gates?",
       ("Steve Jobs", "Paul Allen", "Larry Page", "Mark Zuckerberg"), 1),
    _q(9, "Literature", H, 'Who wrote the novel "1984"?',
       ("Aldous Huxley", "Ray Bradbury", "George Orwell", "Kurt Vonnegut"), 2),
    _q(10, "Science", H, "What is the speed of light in a vacuum?",
       ("299,792,458 m/s", "300,000,000 m/s", "299,800,000 m/s", "298,000,000 m/s"), 0),
    _q(11, "Geography", H, "What is the smallest country in the world?",
       ("Monaco", "San Marino", "Vatican City", "Liechtenstein"), 2),
    _q(12, "History", H, "Which ancient wonder of the world was located in Alexandria?",
       ("Hanging Gardens", "Lighthouse of Alexandria", "Colossus of Rhodes", "Temple of Artemis"), 1),
    _q(13, "Mathematics", H, "What is the value of pi to the first 4 decimal places?",
       ("3.1415", "3.1416", "3.1417", "3.1414"), 1),
    _q(14, "Physics", H, "What is the name of the theoretical boundary around a black hole?",
       ("Event Horizon", "Photon Sphere", "Ergosphere", "Singularity"), 0),
    _q(15, "World History", H, "Which empire was ruled by Cyrus the Great?",
       ("Roman Empire", "Persian Empire", "Ottoman Empire", "Byzantine Empire"), 1),
    _q(16, "General Knowledge", E, "How many days are there in a leap year?",
       ("364", "365", "366", "367"), 2),
    _q(17, "General Knowledge", M, "Which colour is made by mixing blue and yellow paint?",
       ("Purple", "Green", "Orange", "Brown"), 1),
    _q(18, "General Knowledge", H, "How many squares are there on a standard chessboard?",
       ("32", "48", "64", "81"), 2),
    _q(19, "Geography", E, "Which ocean lies between Africa and Australia?",
       ("Atlantic Ocean", "Indian Ocean", "Pacific Ocean", "Arctic Ocean"), 1),
    _q(20, "Geography", M, "What is the capital city of Canada?",
       ("Toronto", "Vancouver", "Montreal", "Ottawa"), 3),
    _q(21, "Movies", M, 'Which film won the first Academy Award for Best Picture?',
       ("Wings", "Sunrise", "The Jazz Singer", "Metropolis"), 0),
    _q(22, "Movies", H, 'Who composed the score for "Star Wars" (1977)?',
       ("Hans Zimmer", "Ennio Morricone", "John Williams", "Howard Shore"), 2),
    _q(23, "Sports", E, "How many players does a football (soccer) team have on the pitch?",
       ("9", "10", "11", "12"), 2),
    _q(24, "Sports", H, "In which city were the first modern Olympic Games held in 1896?",
       ("Paris", "Athens", "London", "Rome"), 1),
    _q(25, "History", E, "Who was the first President of the United States?",
       ("Thomas Jefferson", "Abraham Lincoln", "George Washington", "John Adams"), 2),
    _q(26, "History", M, "In which year did the Berlin Wall fall?",
       ("1987", "1989", "1991", "1993"), 1),
    _q(27, "Music", E, "How many strings does a standard guitar have?",
       ("4", "5", "6", "7"), 2),
    _q(28, "Music", M, "Which composer wrote the \"Moonlight Sonata\"?",
       ("Mozart", "Beethoven", "Chopin", "Bach"), 1),
    _q(29, "Music", H, "What is the Italian term for gradually getting louder?",
       ("Diminuendo", "Staccato", "Crescendo", "Legato"), 2),
    _q(30, "Technology", E, 'What does "CPU" stand for?',
       ("Central Processing Unit", "Computer Power Unit", "Core Program Utility", "Central Peripheral Unit"), 0),
    _q(31, "Technology", H, "In which year was the first iPhone released?",
       ("2005", "2006", "2007", "2008"), 2),
    _q(32, "Physics", E, "What force keeps the planets in orbit around the Sun?",
       ("Magnetism", "Friction", "Gravity", "Electricity"), 2),
    _q(33, "Physics", M, "What is the SI unit of electrical resistance?",
       ("Volt", "Ampere", "Ohm", "Watt"), 2),
    _q(34, "Literature", E, 'Who wrote "Romeo and Juliet"?',
       ("Charles Dickens", "William Shakespeare", "Jane Austen", "Mark Twain"), 1),
    _q(35, "Literature", M, 'In "Moby-Dick", what is the name of the ship\'s captain?',
       ("Ahab", "Nemo", "Hook", "Queequeg"), 0),
    _q(36, "Mathematics", E, "What is 7 multiplied by 8?",
       ("54", "56", "58", "64"), 1),
    _q(37, "Mathematics", M, "What is the square root of 144?",
       ("11", "12", "13", "14"), 1),
    _q(38, "Chemistry", E, "What gas do plants absorb from the atmosphere?",
       ("Oxygen", "Carbon Dioxide", "Nitrogen", "Helium"), 1),
    _q(39, "Chemistry", M, "What is the atomic number of carbon?",
       ("4", "6", "8", "12"), 1),
    _q(40, "Chemistry", H, "Which element has the chemical symbol W?",
       ("Tungsten", "Tin", "Titanium", "Vanadium"), 0),
    _q(41, "World History", E, "Which civilisation built the pyramids of Giza?",
       ("Romans", "Ancient Egyptians", "Aztecs", "Greeks"), 1),
    _q(42, "World History", M, "Which explorer's ships completed the first circumnavigation of the Earth?",
       ("Christopher Columbus", "Vasco da Gama", "Ferdinand Magellan", "James Cook"), 2),
    _q(43, "Science", E, "Which planet is known as the Red Planet?",
       ("Venus", "Mars", "Jupiter", "Mercury"), 1),
    _q(44, "Science", H, "What is the powerhouse of the cell?",
       ("Nucleus", "Ribosome", "Mitochondrion", "Golgi apparatus"), 2),
    _q(45, "Sports", M, "How many points is a touchdown worth in American football?",
       ("3", "6", "7", "2"), 1),
    _q(46, "Mathematics", H, "How many degrees are there in the interior angles of a hexagon combined?",
       ("540", "620", "720", "900"), 2),
    _q(47, "Technology", M, 'What does "HTTP" stand for?',
       ("HyperText Transfer Protocol", "High Transfer Text Protocol", "Hyperlink Text Transport Program",
        "Host Transfer Text Protocol"), 0),
    _q(48, "Physics", H, "Who proposed the theory of general relativity?",
       ("Isaac Newton", "Niels Bohr", "Albert Einstein", "Max Planck"), 2),
)


def questions_for_categories(
    categories: Iterable[str], bank: Sequence[Question] = FALLBACK_QUESTIONS
) -> List[Question]:
    """Return the bank questions whose category is in ``categories``."""
    wanted = set(categories)
    return [question for question in bank if question.category in wanted]


def sample_fallback_questions(
    categories: Iterable[str],
    count: int,
    *,
    rng: Optional[random.Random] = None,
    bank: Sequence[Question] = FALLBACK_QUESTIONS,
) -> List[Question]:
    """Sample ``count`` questions from the static bank.

    The bank is filtered to the requested categories; when that leaves fewer than
    ``count`` questions, the whole bank is used instead. The bank is assumed to hold at
    least ``count`` questions, otherwise fewer are returned.

    Args:
        categories: Categories selected for the session
        count: Number of questions wanted
        rng: Random generator (a fresh unseeded one when omitted)
        bank: Question bank to draw from

    Returns:
        Up to ``count`` distinct questions in random order
    """
    rng = rng or build_rng()
    eligible = questions_for_categories(categories, bank)
    if len(eligible) < count:
        eligible = list(bank)

    unique = list({question.id: question for question in eligible}.values())
    return shuffled(rng, unique)[:count]
