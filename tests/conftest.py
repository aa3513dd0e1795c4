"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path

from moviematch.logger import get_logger, reset_logger


WIKI_XML = """<feed>
<doc>
<title>Wikipedia: Anarchism (film)</title>
<url>https://en.wikipedia.org/wiki/Anarchism_(film)</url>
<abstract>Anarchism is a short documentary.</abstract>
<links>
<sublink linktype="nav"><anchor>Synopsis</anchor><link>https://en.wikipedia.org/wiki/Anarchism_(film)#Synopsis</link></sublink>
</links>
</doc>
<doc>
<title>Wikipedia: Autism</title>
<url>https://en.wikipedia.org/wiki/Autism</url>
<abstract>Autism is a developmental condition.</abstract>
<links>
<sublink linktype="nav"><anchor>Characteristics</anchor><link>https://en.wikipedia.org/wiki/Autism#Characteristics</link></sublink>
<sublink linktype="nav"><anchor>Causes</anchor><link>https://en.wikipedia.org/wiki/Autism#Causes</link></sublink>
</links>
</doc>
<doc>
<title>Wikipedia: Toy Story</title>
<url>https://en.wikipedia.org/wiki/Toy_Story</url>
<abstract>Toy Story is a 1995 American computer-animated film produced by Pixar Animation Studios. It stars Tom Hanks, Tim Allen and Don Rickles.</abstract>
<links>
<sublink linktype="nav"><anchor>Plot</anchor><link>https://en.wikipedia.org/wiki/Toy_Story#Plot</link></sublink>
<sublink linktype="nav"><anchor>Voice cast</anchor><link>https://en.wikipedia.org/wiki/Toy_Story#Voice_cast</link></sublink>
<sublink linktype="nav"><anchor>Production</anchor><link>https://en.wikipedia.org/wiki/Toy_Story#Production</link></sublink>
<sublink linktype="nav"><anchor>Release</anchor><link>https://en.wikipedia.org/wiki/Toy_Story#Release</link></sublink>
<sublink linktype="nav"><anchor>Reception</anchor><link>https://en.wikipedia.org/wiki/Toy_Story#Reception</link></sublink>
</links>
</doc>
<doc>
<title>Wikipedia: Toy Story 2</title>
<url>https://en.wikipedia.org/wiki/Toy_Story_2</url>
<abstract>Toy Story 2 is a 1999 American computer-animated film produced by Pixar Animation Studios, with Tom Hanks, Tim Allen and Joan Cusack.</abstract>
<links>
<sublink linktype="nav"><anchor>Plot</anchor><link>https://en.wikipedia.org/wiki/Toy_Story_2#Plot</link></sublink>
<sublink linktype="nav"><anchor>Cast</anchor><link>https://en.wikipedia.org/wiki/Toy_Story_2#Cast</link></sublink>
<sublink linktype="nav"><anchor>Production</anchor><link>https://en.wikipedia.org/wiki/Toy_Story_2#Production</link></sublink>
<sublink linktype="nav"><anchor>Release</anchor><link>https://en.wikipedia.org/wiki/Toy_Story_2#Release</link></sublink>
</links>
</doc>
<doc>
<title>Wikipedia: Unknown Picture (film)</title>
<url>https://en.wikipedia.org/wiki/Unknown_Picture</url>
<abstract>A lost film.</abstract>
<links></links>
</doc>
</feed>
"""

METADATA_CSV = """id,title,original_title,production_companies,release_date,budget,revenue
862,Toy Story,Toy Story,"[{'name': 'Pixar Animation Studios', 'id': 3}]",1995-10-30,30000000,373554033
863,Toy Story 2,Toy Story 2,"[{'name': 'Pixar Animation Studios', 'id': 3}]",1999-10-30,90000000,497366869
100,Anarchism,Anarchism,[],,,
"""

CREDITS_CSV = """cast,crew,id
"[{'cast_id': 14, 'character': 'Woody (voice)', 'name': 'Tom Hanks', 'profile_path': None}, {'cast_id': 15, 'character': 'Buzz Lightyear (voice)', 'name': 'Tim Allen', 'profile_path': None}, {'cast_id': 16, 'character': 'Mr. Potato Head (voice)', 'name': 'Don Rickles', 'profile_path': None}]",[],862
"[{'name': 'Tom Hanks'}, {'name': 'Tim Allen'}]","[{'department': 'Acting', 'job': 'Voice', 'name': 'Joan Cusack'}]",863
"""

RATINGS_CSV = """userId,movieId,rating,timestamp
1,862,4.0,1260759144
2,862,5.0,1260759179
2,862,3.0,1260759182
1,863,3.5,1260759185
"""


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    """Route the global logger to a temporary directory without console output."""
    reset_logger()
    logger = get_logger(log_dir=tmp_path / "logs", enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def wiki_file(tmp_path) -> Path:
    path = tmp_path / "wiki.xml"
    path.write_text(WIKI_XML, encoding="utf-8")
    return path


@pytest.fixture
def metadata_file(tmp_path) -> Path:
    path = tmp_path / "movies_metadata.csv"
    path.write_text(METADATA_CSV, encoding="utf-8")
    return path


@pytest.fixture
def credits_file(tmp_path) -> Path:
    path = tmp_path / "credits.csv"
    path.write_text(CREDITS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def ratings_file(tmp_path) -> Path:
    path = tmp_path / "ratings.csv"
    path.write_text(RATINGS_CSV, encoding="utf-8")
    return path
