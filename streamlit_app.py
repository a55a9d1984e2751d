"""
Streamlit UI for CineCast.
Calls the FastAPI server (default http://localhost:4444) for chat, movie
search, weather-based recommendations and ratings.

Run API:  uvicorn api:app --reload --port 4444
Run UI:   streamlit run streamlit_app.py
"""

# Streamlit framework to build a simple interactive UI
import streamlit as st  # UI primitives
# Time for message timestamps
import time  # epoch milliseconds

# API client returning results instead of raising
from cinecast.client import DEFAULT_API_URL, ApiClient, ApiResult, extract_quoted_title

TMDB_IMAGE_BASE = "https://image.tmdb.org/t/p/w300"  # poster CDN prefix

# Configure Streamlit page (title and layout width)
st.set_page_config(page_title="CineCast", layout="wide")  # wide layout

# Main page title
st.title("🎬 CineCast – Movies for Every Forecast")  # friendly header

# Session state: chat transcript and the currently selected movie title
if "messages" not in st.session_state:
	st.session_state.messages = []  # list of {text, sender, timestamp}
if "selected_title" not in st.session_state:
	st.session_state.selected_title = ""  # filled from quoted titles in chat replies


def show_error(result: ApiResult) -> None:
	"""Render an API failure; 401 gets a hint about the token."""
	message = result.error or "Request failed"
	if result.details:
		message = f"{message}: {result.details}"
	if result.status_code == 401:
		message += " (check the Firebase ID token in the sidebar)"
	st.error(message)


def render_movie(movie: dict, client: ApiClient, key_prefix: str) -> None:
	"""Render one movie row: poster, title, overview and a rating control."""
	c1, c2 = st.columns([1, 4])  # small image column + large text column
	with c1:
		if movie.get("posterPath"):
			st.image(f"{TMDB_IMAGE_BASE}{movie['posterPath']}")  # poster
	with c2:
		year = (movie.get("releaseDate") or "")[:4]
		st.subheader(f"{movie['title']} ({year})" if year else movie["title"])
		st.caption(f"TMDb rating: {movie.get('voteAverage', 0):.1f}/10")
		if movie.get("overview"):
			st.write(movie["overview"][:350])  # synopsis
		score = st.slider("Your rating", 1, 10, 7, key=f"{key_prefix}-rate-{movie['id']}")
		if st.button("Rate", key=f"{key_prefix}-btn-{movie['id']}"):
			res = client.rate(movie["id"], score)
			if res.ok:
				st.success(f"Saved. Average {res.data['average']} from {res.data['count']} ratings")
			else:
				show_error(res)
	st.divider()  # separator


# Sidebar contains configuration controls
with st.sidebar:
	st.header("Settings")  # section label
	api_url = st.text_input("API URL", DEFAULT_API_URL)  # where the API lives
	token = st.text_input("Firebase ID token", type="password")  # bearer token for /api routes
	limit = st.slider("Recommendations", min_value=1, max_value=10, value=5)  # movies per forecast
	if st.button("🗑️ Clear chat"):
		st.session_state.messages = []
		st.rerun()

client = ApiClient(api_url, token=token or None)

chat_tab, search_tab, weather_tab = st.tabs(["Chat", "Movie search", "Weather picks"])

# Chat: transcript lives only in this browser session
with chat_tab:
	for msg in st.session_state.messages:
		with st.chat_message("user" if msg["sender"] == "user" else "assistant"):
			st.markdown(msg["text"])

	if prompt := st.chat_input("Ask about a movie..."):
		st.session_state.messages.append({"text": prompt, "sender": "user", "timestamp": int(time.time() * 1000)})
		with st.chat_message("user"):
			st.markdown(prompt)
		with st.chat_message("assistant"):
			with st.spinner("Thinking..."):
				res = client.chat(prompt)
			reply = res.data["response"] if res.ok else "Sorry, I couldn't process your request."
			st.markdown(reply)
			if not res.ok:
				show_error(res)
		st.session_state.messages.append({"text": reply, "sender": "bot", "timestamp": int(time.time() * 1000)})
		# A quoted title in the reply becomes the movie-search default
		title = extract_quoted_title(reply) if res.ok else None
		if title:
			st.session_state.selected_title = title
			st.caption(f"Look up \"{title}\" in the Movie search tab")

# Movie search: title lookup against the catalog
with search_tab:
	query = st.text_input("Movie title", value=st.session_state.selected_title, placeholder="e.g., Inception")
	if st.button("Search", type="primary") and query.strip():
		with st.spinner("Searching..."):
			res = client.search_movie(query)
		if res.ok:
			st.success(f"Found {len(res.data)} movies")
			for movie in res.data:
				render_movie(movie, client, "search")
		else:
			show_error(res)

# Weather picks: city -> forecast -> genre -> movies
with weather_tab:
	city = st.text_input("City", placeholder="e.g., Springfield")
	if city.strip():
		sugg = client.city_suggestions(city)
		if sugg.ok and sugg.data:
			st.caption("Did you mean: " + " · ".join(s["displayName"] for s in sugg.data[:5]))

	if st.button("Get recommendations", type="primary") and city.strip():
		with st.spinner("Checking the weather..."):
			st.session_state.weather_result = client.recommend(city=city, limit=limit)

	result = st.session_state.get("weather_result")
	if result is not None:
		if not result.ok:
			show_error(result)
		elif isinstance(result.data.get("weather"), list):
			# Several cities share the name: let the user pick one by coordinates
			candidates = result.data["weather"]
			labels = [f"{w['cityName']}, {w['countryCode']} ({w['lat']}, {w['lon']})" for w in candidates]
			choice = st.selectbox("Several cities match, pick one", range(len(labels)), format_func=lambda i: labels[i])
			if st.button("Use this city"):
				picked = candidates[choice]
				st.session_state.weather_result = client.recommend(
					city=picked["cityName"], lat=picked["lat"], lon=picked["lon"], limit=limit,
				)
				st.rerun()
		else:
			weather = result.data["weather"]
			st.subheader(f"{weather['cityName']}: {weather['conditionMain']}, {weather['temperatureC']:.1f}°C")
			st.caption(f"Humidity {weather['humidityPct']:.0f}% · wind {weather['windSpeed']:.1f} m/s")
			st.write(f"Recommended genre: **{result.data['recommendedGenre']}**")
			for movie in result.data["movieRecommendations"]:
				render_movie(movie, client, "weather")
