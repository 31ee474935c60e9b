"""Sample books used to seed an empty collection."""
from typing import List

from bookstore.models import Book

SAMPLE_BOOKS: List[Book] = [
    Book("To Kill a Mockingbird", "Harper Lee", "Fiction", 1960, 12.99, 336, True, "J. B. Lippincott & Co."),
    Book("1984", "George Orwell", "Dystopian", 1949, 10.99, 328, True, "Secker & Warburg"),
    Book("The Great Gatsby", "F. Scott Fitzgerald", "Fiction", 1925, 9.99, 180, True, "Charles Scribner's Sons"),
    Book("Brave New World", "Aldous Huxley", "Dystopian", 1932, 11.5, 311, False, "Chatto & Windus"),
    Book("The Hobbit", "J.R.R. Tolkien", "Fantasy", 1937, 14.99, 310, True, "George Allen & Unwin"),
    Book("The Catcher in the Rye", "J.D. Salinger", "Fiction", 1951, 8.99, 224, True, "Little, Brown and Company"),
    Book("Pride and Prejudice", "Jane Austen", "Romance", 1813, 7.99, 432, True, "T. Egerton, Whitehall"),
    Book("The Lord of the Rings", "J.R.R. Tolkien", "Fantasy", 1954, 19.99, 1178, True, "Allen & Unwin"),
    Book("Animal Farm", "George Orwell", "Political Satire", 1945, 8.5, 112, False, "Secker & Warburg"),
    Book("The Alchemist", "Paulo Coelho", "Fiction", 1988, 10.99, 197, True, "HarperOne"),
    Book("Moby Dick", "Herman Melville", "Adventure", 1851, 12.5, 635, False, "Harper & Brothers"),
    Book("Wuthering Heights", "Emily Brontë", "Gothic Fiction", 1847, 9.99, 342, True, "Thomas Cautley Newby"),
]
