"""Shared HTML fixtures."""

import pytest

_LANDING_PAGE = """
<!DOCTYPE html>
<html>
<head>
  <title>Acme Studio</title>
  <link rel="stylesheet" href="css/site.css">
  <script src="js/app.js"></script>
</head>
<body>
  <header class="site-header">
    <h1 class="logo">Acme Studio</h1>
    <nav><a href="/">Home</a><a href="/work">Work</a></nav>
  </header>

  <section id="hero" class="hero">
    <h2 class="headline">Build faster websites</h2>
    <p class="lead">We craft fast, accessible sites for small teams.</p>
    <a class="btn primary" href="#contact">Get started</a>
  </section>

  <section class="testimonials">
    <h2>What clients say</h2>
    <div class="testimonial">
      <h3 class="name">Ana</h3>
      <p class="content">Great service, highly recommended.</p>
    </div>
    <div class="testimonial">
      <h3 class="name">Ben</h3>
      <p class="content">They rebuilt our shop in two weeks.</p>
    </div>
    <div class="testimonial">
      <h3 class="name">Cleo</h3>
      <p class="content">Our pages finally load <em>instantly</em>.</p>
    </div>
  </section>

  <footer>
    <p class="copyright">Copyright 2024 Acme Studio</p>
  </footer>
</body>
</html>
"""


@pytest.fixture
def landing_page() -> str:
    """A small landing page: header, hero, three testimonials and a footer."""
    return _LANDING_PAGE
